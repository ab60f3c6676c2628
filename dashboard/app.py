"""
MemberHub — Portal Home

Landing page of the membership portal. Resolves the organization for
this host, then sends members to their dashboard and visitors to
sign in.

Run with: streamlit run dashboard/app.py
Or:       python main.py dashboard
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

# Ensure project root is on the path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env", override=True)


# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="Membership Portal",
    page_icon="◆",
    layout="wide",
)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

from dashboard.auth import require_access
from dashboard.sidebar import render_sidebar
from dashboard.theme import inject_theme_css, org_display_name, org_header
from memberhub.tenancy.models import Role

session = require_access(require_auth=False)
organization = session.organization

inject_theme_css(organization)
render_sidebar(session)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

st.markdown(org_header(organization), unsafe_allow_html=True)

if organization is None:
    st.markdown("## Setup Required")
    st.markdown(
        "No organization is configured for this address. "
        "Check the URL, or ask your administrator to activate the organization."
    )
    st.stop()

st.markdown(f"## Welcome to {org_display_name(organization)}")

if organization.is_fallback:
    st.info(
        "Running against the development organization. "
        "Add `?tenant=<subdomain>` to the URL to pick a real one."
    )

if session.is_authenticated:
    user = session.user
    st.markdown(f"Signed in as **{user.name or user.email}**.")
    col1, col2 = st.columns(2)
    with col1:
        st.page_link("pages/2_Member_Dashboard.py", label="Go to my membership")
    if user.role.satisfies(Role.ADMIN):
        with col2:
            st.page_link("pages/3_Admin.py", label="Open administration")
else:
    st.markdown("Sign in to view your membership, or create an account to join.")
    st.page_link("pages/1_Sign_In.py", label="Sign in or register")

if organization.contact_email:
    st.caption(f"Questions? Contact {organization.contact_email}")
