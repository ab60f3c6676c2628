"""
MemberHub — Member Dashboard

The signed-in member's view: membership status, account status and
mailing-list preferences.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env", override=True)


st.set_page_config(
    page_title="My Membership — Membership Portal",
    page_icon="🪪",
    layout="wide",
)

from dashboard.auth import get_app, require_access, run_async
from dashboard.pages._member_helpers import (
    account_status_message,
    changed_subscriptions,
    current_membership,
    membership_summary,
    subscription_rows,
)
from dashboard.sidebar import render_sidebar
from dashboard.theme import inject_theme_css, page_header, status_badge
from memberhub.exceptions import MemberHubError

session = require_access()
queries = get_app(st).queries
user = session.user

inject_theme_css(session.organization)
render_sidebar(session)

page_header(
    f"Welcome, {user.name or user.email}",
    "Your membership at a glance",
)

today = datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

try:
    memberships = run_async(st, queries.list_memberships(user_id=user.id)).items
    mailing_lists = run_async(st, queries.list_mailing_lists())
    subscriptions = run_async(st, queries.get_user_subscriptions(user.id))
except MemberHubError as e:
    st.error(f"Could not load your membership: {e}")
    st.stop()


# ---------------------------------------------------------------------------
# Status cards
# ---------------------------------------------------------------------------

col1, col2 = st.columns(2)

with col1:
    st.markdown("#### Membership")
    summary = membership_summary(current_membership(memberships, today), today)
    st.markdown(
        f"**{summary['headline']}** {status_badge(summary['status'])}",
        unsafe_allow_html=True,
    )
    st.caption(summary["detail"])

with col2:
    st.markdown("#### Account")
    st.markdown(status_badge(user.status.value), unsafe_allow_html=True)
    st.caption(account_status_message(user))


# ---------------------------------------------------------------------------
# Communication preferences
# ---------------------------------------------------------------------------

st.divider()
st.markdown("#### Communication Preferences")

rows = subscription_rows(mailing_lists, subscriptions)
if not rows:
    st.caption("Your organization has no mailing lists yet.")
else:
    with st.form("subscriptions"):
        choices = {}
        for row in rows:
            choices[row["list_id"]] = st.checkbox(
                row["name"],
                value=row["subscribed"],
                disabled=row["locked"],
                help=row["description"] or None,
                key=f"sub_{row['list_id']}",
            )
        saved = st.form_submit_button("Save preferences", type="primary")

    if saved:
        changes = changed_subscriptions(rows, choices)
        try:
            for list_id, subscribed in changes:
                run_async(st, queries.update_subscription(user.id, list_id, subscribed))
        except MemberHubError as e:
            st.error(f"Could not save preferences: {e}")
        else:
            st.success("Preferences saved." if changes else "Nothing to change.")


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

if memberships:
    st.divider()
    st.markdown("#### Membership History")
    st.dataframe(
        [
            {
                "Type": m.membership_type.name if m.membership_type else m.membership_type_id,
                "Status": m.status.value,
                "Start": m.start_date[:10],
                "End": m.end_date[:10],
                "Auto-renew": m.auto_renew,
            }
            for m in memberships
        ],
        use_container_width=True,
        hide_index=True,
    )
