"""
Extracted helpers for the Member Dashboard page.

Separated from the Streamlit page so they can be unit-tested
without importing streamlit (which requires a running server).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from memberhub.tenancy.models import (
    ListSubscription,
    MailingList,
    MailingListType,
    Membership,
    MembershipStatus,
    User,
    UserStatus,
)

ACCOUNT_STATUS_MESSAGES = {
    UserStatus.ACTIVE: "Your account is active.",
    UserStatus.PENDING: "Your account is awaiting approval by an administrator.",
    UserStatus.INACTIVE: "Your account is inactive. Contact your organization to reactivate it.",
    UserStatus.SUSPENDED: "Your account has been suspended. Contact your organization.",
}


def parse_date(value: Optional[str]) -> Optional[date]:
    """Date part of a store date or datetime string, or None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def current_membership(
    memberships: Iterable[Membership], today: date
) -> Optional[Membership]:
    """
    The active membership that runs the longest past `today`.

    Memberships whose end date has already passed are ignored even if
    still marked active.
    """
    best: Optional[Membership] = None
    best_end: Optional[date] = None
    for membership in memberships:
        if membership.status != MembershipStatus.ACTIVE:
            continue
        end = parse_date(membership.end_date)
        if end is None or end < today:
            continue
        if best_end is None or end > best_end:
            best, best_end = membership, end
    return best


def days_remaining(membership: Membership, today: date) -> int:
    end = parse_date(membership.end_date)
    if end is None:
        return 0
    return max((end - today).days, 0)


def membership_summary(membership: Optional[Membership], today: date) -> dict[str, str]:
    """Headline, detail and status for the membership card."""
    if membership is None:
        return {
            "headline": "No active membership",
            "detail": "Contact your organization to join.",
            "status": "inactive",
        }
    membership_type = membership.membership_type
    name = membership_type.name if membership_type else "Membership"
    days = days_remaining(membership, today)
    return {
        "headline": name,
        "detail": f"Valid until {membership.end_date[:10]} ({days} days remaining)",
        "status": membership.status.value,
    }


def account_status_message(user: User) -> str:
    return ACCOUNT_STATUS_MESSAGES.get(user.status, "")


def subscription_rows(
    mailing_lists: Iterable[MailingList],
    subscriptions: Iterable[ListSubscription],
) -> list[dict[str, Any]]:
    """
    One row per active mailing list with the member's subscription state.

    Mandatory lists are always shown as subscribed and locked. Optional
    lists default to unsubscribed when the member has no record yet.
    """
    by_list = {s.list_id: s.subscribed for s in subscriptions}
    rows = []
    for mailing_list in mailing_lists:
        mandatory = mailing_list.type == MailingListType.MANDATORY
        rows.append({
            "list_id": mailing_list.id,
            "name": mailing_list.name,
            "description": mailing_list.description or "",
            "subscribed": True if mandatory else by_list.get(mailing_list.id, False),
            "locked": mandatory,
        })
    return rows


def changed_subscriptions(
    rows: Iterable[dict[str, Any]], choices: dict[str, bool]
) -> list[tuple[str, bool]]:
    """(list_id, subscribed) pairs whose choice differs from the current row state."""
    changes = []
    for row in rows:
        if row["locked"]:
            continue
        chosen = choices.get(row["list_id"], row["subscribed"])
        if chosen != row["subscribed"]:
            changes.append((row["list_id"], chosen))
    return changes
