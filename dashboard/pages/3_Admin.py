"""
MemberHub — Administration

Admin-only view of the current organization: KPI cards, the member
table with search and status filter, status changes and granting a
membership (which activates a pending member).
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
    page_title="Administration — Membership Portal",
    page_icon="🛡️",
    layout="wide",
)

from dashboard.auth import get_app, require_access, run_async
from dashboard.pages._admin_helpers import (
    STATUS_FILTER_OPTIONS,
    find_user,
    membership_end_date,
    membership_type_label,
    next_status_options,
    stats_cards,
    status_filter_value,
    user_rows,
)
from dashboard.sidebar import render_sidebar
from dashboard.theme import inject_theme_css, kpi_card, page_header
from memberhub.exceptions import MemberHubError
from memberhub.tenancy.models import Role

session = require_access(required_role=Role.ADMIN)
app = get_app(st)
queries = app.queries

inject_theme_css(session.organization)
render_sidebar(session)

page_header("Administration", session.organization.name if session.organization else "")


# ---------------------------------------------------------------------------
# KPI cards
# ---------------------------------------------------------------------------

try:
    stats = run_async(st, queries.get_dashboard_stats())
except MemberHubError as e:
    st.error(f"Could not load dashboard statistics: {e}")
    st.stop()

columns = st.columns(4)
for column, (label, value, hint) in zip(
    columns, stats_cards(stats, app.config.expiring_window_days)
):
    with column:
        st.markdown(kpi_card(label, value, hint), unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

st.divider()
st.markdown("#### Members")

col_search, col_status, col_page = st.columns([3, 1, 1])
with col_search:
    search = st.text_input("Search", placeholder="Name or email")
with col_status:
    status_filter = st.selectbox("Status", STATUS_FILTER_OPTIONS)
with col_page:
    page_number = st.number_input("Page", min_value=1, value=1, step=1)

try:
    user_page = run_async(
        st,
        queries.list_users(
            page=int(page_number),
            search=search,
            status=status_filter_value(status_filter),
        ),
    )
except MemberHubError as e:
    st.error(f"Could not load members: {e}")
    st.stop()

users = user_page.items
st.caption(
    f"Showing {len(users)} of {user_page.total_items} members "
    f"(page {user_page.page} of {max(user_page.total_pages, 1)})"
)
st.dataframe(user_rows(users), use_container_width=True, hide_index=True)

if not users:
    st.stop()

labels = {u.id: f"{u.name} <{u.email}>" for u in users}
selected_id = st.selectbox(
    "Select member", list(labels), format_func=lambda uid: labels[uid]
)
selected = find_user(users, selected_id)


# ---------------------------------------------------------------------------
# Actions on the selected member
# ---------------------------------------------------------------------------

col_status_action, col_grant = st.columns(2)

with col_status_action:
    st.markdown("##### Change status")
    new_status = st.selectbox("New status", next_status_options(selected))
    if st.button("Update status"):
        try:
            run_async(st, queries.update_user_status(selected.id, new_status))
        except MemberHubError as e:
            st.error(f"Status update failed: {e}")
        else:
            st.success(f"{selected.name} is now {new_status}.")
            st.rerun()

with col_grant:
    st.markdown("##### Grant membership")
    try:
        types = run_async(st, queries.list_membership_types())
    except MemberHubError as e:
        types = []
        st.error(f"Could not load membership types: {e}")

    if not types:
        st.caption("No active membership types.")
    else:
        type_by_id = {t.id: t for t in types}
        type_id = st.selectbox(
            "Membership type",
            list(type_by_id),
            format_func=lambda tid: membership_type_label(type_by_id[tid]),
        )
        start = st.date_input("Start date", value=datetime.now(timezone.utc).date())
        auto_renew = st.checkbox("Auto-renew")
        chosen = type_by_id[type_id]
        st.caption(f"Ends on {membership_end_date(start, chosen.duration_months).isoformat()}")

        if st.button("Grant membership", type="primary"):
            try:
                run_async(st, queries.grant_membership(
                    selected, chosen, start=start, auto_renew=auto_renew
                ))
            except MemberHubError as e:
                st.error(f"Could not create membership: {e}")
            else:
                st.success(f"Membership granted to {selected.name}.")
                st.rerun()
