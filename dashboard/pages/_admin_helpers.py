"""
Extracted helpers for the Administration page.

Separated from the Streamlit page so they can be unit-tested
without importing streamlit (which requires a running server).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta

from memberhub.tenancy.models import DashboardStats, MembershipType, User, UserStatus

ALL_STATUSES = "all"
STATUS_FILTER_OPTIONS = [ALL_STATUSES] + [s.value for s in UserStatus]


def status_filter_value(option: str) -> Optional[str]:
    """Map the status selectbox option to a list_users status, None for "all"."""
    if not option or option == ALL_STATUSES:
        return None
    return UserStatus(option).value


def stats_cards(stats: DashboardStats, window_days: int = 30) -> list[tuple[str, str, str]]:
    """(label, value, hint) for each KPI card on the admin dashboard."""
    return [
        ("Total Members", str(stats.total_members), f"{stats.active_members} active"),
        ("Pending Approval", str(stats.pending_members), "Awaiting membership"),
        ("Active Memberships", str(stats.active_memberships), ""),
        (
            "Expiring Soon",
            str(stats.expiring_memberships),
            f"Within {window_days} days",
        ),
    ]


def user_rows(users: Iterable[User]) -> list[dict[str, Any]]:
    """Rows for the member table."""
    return [
        {
            "Name": user.name,
            "Email": user.email,
            "Role": user.role.value.replace("_", " ").title(),
            "Status": user.status.value,
            "Joined": (user.created or "")[:10],
        }
        for user in users
    ]


def membership_type_label(membership_type: MembershipType) -> str:
    """Select-box label, e.g. 'Gold · 12 months · $120.00'."""
    months = membership_type.duration_months
    unit = "month" if months == 1 else "months"
    return f"{membership_type.name} · {months} {unit} · ${membership_type.price:,.2f}"


def membership_end_date(start: date, duration_months: int) -> date:
    """End date of a membership starting on `start`."""
    return start + relativedelta(months=duration_months)


def next_status_options(user: User) -> list[str]:
    """Statuses an admin can move this user to (everything but the current one)."""
    return [s.value for s in UserStatus if s != user.status]


def find_user(users: Iterable[User], user_id: Optional[str]) -> Optional[User]:
    for user in users:
        if user.id == user_id:
            return user
    return None
