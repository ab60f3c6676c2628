"""
MemberHub — Sign In

Sign in to the organization resolved for this host, or register as a
new member. New registrations start as pending members and must sign
in afterwards.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env", override=True)


st.set_page_config(
    page_title="Sign In — Membership Portal",
    page_icon="🔐",
    layout="centered",
)

from dashboard.auth import (
    _is_rate_limited,
    _record_failed_attempt,
    _reset_failed_attempts,
    cooldown_remaining,
    require_access,
    run_async,
)
from dashboard.pages._sign_in_helpers import (
    build_registration,
    login_error_message,
    registration_error_message,
    validate_login_form,
)
from dashboard.theme import inject_theme_css, org_display_name, org_header
from memberhub.exceptions import MemberHubError

session = require_access(require_auth=False)
organization = session.organization
inject_theme_css(organization)

if session.is_authenticated:
    st.switch_page("pages/2_Member_Dashboard.py")

st.markdown(org_header(organization), unsafe_allow_html=True)

if organization is None:
    st.markdown("## Setup Required")
    st.markdown(
        "No organization is available for this address, so sign-in is disabled."
    )
    st.stop()


# ---------------------------------------------------------------------------
# Mode toggle
# ---------------------------------------------------------------------------

mode = st.radio(
    "mode",
    ["Sign in", "Register"],
    horizontal=True,
    label_visibility="collapsed",
)


# ---------------------------------------------------------------------------
# Sign in
# ---------------------------------------------------------------------------

if mode == "Sign in":
    st.markdown(f"### Sign in to {org_display_name(organization)}")

    if _is_rate_limited(st):
        st.error(
            f"Too many failed attempts. Try again in {cooldown_remaining(st)} seconds."
        )
        st.stop()

    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        problems = validate_login_form(email, password)
        if problems:
            for problem in problems:
                st.warning(problem)
        else:
            try:
                run_async(st, session.login(email.strip(), password))
            except MemberHubError as e:
                _record_failed_attempt(st)
                st.error(login_error_message(e))
            else:
                _reset_failed_attempts(st)
                st.switch_page("pages/2_Member_Dashboard.py")


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

else:
    st.markdown(f"### Join {org_display_name(organization)}")

    with st.form("register"):
        name = st.text_input("Full name")
        email = st.text_input("Email")
        phone = st.text_input("Phone (optional)")
        password = st.text_input("Password", type="password")
        password_confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Create account", type="primary")

    if submitted:
        registration, problems = build_registration({
            "name": name,
            "email": email,
            "phone": phone,
            "password": password,
            "password_confirm": password_confirm,
        })
        if problems:
            for problem in problems:
                st.warning(problem)
        else:
            try:
                run_async(st, session.register(registration))
            except MemberHubError as e:
                st.error(registration_error_message(e))
            else:
                st.success(
                    "Account created. An administrator will review your membership; "
                    "you can sign in now."
                )
