"""
MemberHub — Navigation Sidebar

Shows the organization branding, the signed-in member (with an Admin
badge for admins) and a sign-out button.

Usage:
    from dashboard.sidebar import render_sidebar

    render_sidebar(session)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import streamlit as st

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from memberhub.tenancy.models import Role, User
from memberhub.tenancy.session import SessionManager

logger = logging.getLogger(__name__)

VERSION = "v0.1.0"


def user_label(user: Optional[User]) -> str:
    """Sidebar caption for the signed-in member."""
    if user is None:
        return "Not signed in"
    name = user.name or user.email
    if user.role.satisfies(Role.ADMIN):
        return f"{name} · Admin"
    return name


def render_sidebar(session: SessionManager, show_version: bool = True) -> None:
    """Render the portal sidebar for the current session."""
    from dashboard.theme import org_header

    with st.sidebar:
        st.markdown(org_header(session.organization), unsafe_allow_html=True)
        if session.organization is not None and session.organization.is_fallback:
            st.caption("Development organization")

        st.divider()
        st.caption(user_label(session.user))

        if session.is_authenticated:
            st.page_link("pages/2_Member_Dashboard.py", label="My Membership")
            if session.user.role.satisfies(Role.ADMIN):
                st.page_link("pages/3_Admin.py", label="Administration")
            if st.button("Sign out", use_container_width=True):
                session.logout()
                st.rerun()
        else:
            st.page_link("pages/1_Sign_In.py", label="Sign in")

        if show_version:
            st.divider()
            st.caption(f"MemberHub {VERSION}")
