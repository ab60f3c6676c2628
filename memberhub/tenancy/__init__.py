"""
Tenancy — tenant resolution, session bootstrap and access control.

Resolves the active organization from the request host, keeps the
session's user consistent with that organization, gates views by role
and scopes every domain query to the current tenant.
"""

from memberhub.tenancy.guard import GuardDecision, GuardOutcome, RouteGuard
from memberhub.tenancy.models import (
    FALLBACK_ORG_ID,
    DashboardStats,
    ListSubscription,
    MailingList,
    Membership,
    MembershipType,
    Organization,
    OrgStatus,
    Page,
    Registration,
    Role,
    User,
    UserStatus,
)
from memberhub.tenancy.queries import DomainQueries
from memberhub.tenancy.resolver import RequestContext, TenantResolver
from memberhub.tenancy.session import SessionManager, SessionState

__all__ = [
    "FALLBACK_ORG_ID",
    "DashboardStats",
    "DomainQueries",
    "GuardDecision",
    "GuardOutcome",
    "ListSubscription",
    "MailingList",
    "Membership",
    "MembershipType",
    "Organization",
    "OrgStatus",
    "Page",
    "Registration",
    "RequestContext",
    "Role",
    "RouteGuard",
    "SessionManager",
    "SessionState",
    "TenantResolver",
    "User",
    "UserStatus",
]
