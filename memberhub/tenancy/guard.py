"""
Route Guard.

Decides whether a view may render for the current session:

    decision = RouteGuard.check(session.state, required_role=Role.ADMIN)
    if decision.is_pending:   show a loading state
    elif decision.denied:     show decision.reason
    else:                     render the view

Privilege is a lattice: super_admin covers admin; member is
incomparable to both. Without a required role the check falls back to
membership in `allowed_roles` (all roles by default).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from memberhub.tenancy.models import ALL_ROLES, Role

AUTHENTICATION_REQUIRED = "authentication-required"
INSUFFICIENT_ROLE = "insufficient-role"


class GuardOutcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    PENDING = "pending"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> GuardDecision:
        return cls(GuardOutcome.ALLOW)

    @classmethod
    def deny(cls, reason: str) -> GuardDecision:
        return cls(GuardOutcome.DENY, reason)

    @classmethod
    def pending(cls) -> GuardDecision:
        return cls(GuardOutcome.PENDING)

    @property
    def allowed(self) -> bool:
        return self.outcome == GuardOutcome.ALLOW

    @property
    def denied(self) -> bool:
        return self.outcome == GuardOutcome.DENY

    @property
    def is_pending(self) -> bool:
        return self.outcome == GuardOutcome.PENDING


class RouteGuard:
    """Capability check over a SessionState."""

    @staticmethod
    def check(
        state,
        require_auth: bool = True,
        required_role: Optional[Role | str] = None,
        allowed_roles: Optional[Iterable[Role | str]] = None,
    ) -> GuardDecision:
        if not state.is_initialized:
            return GuardDecision.pending()

        user = state.user
        if require_auth and user is None:
            return GuardDecision.deny(AUTHENTICATION_REQUIRED)

        if user is None:
            return GuardDecision.allow()

        if required_role is not None:
            if user.role.satisfies(Role(required_role)):
                return GuardDecision.allow()
            return GuardDecision.deny(INSUFFICIENT_ROLE)

        roles = (
            frozenset(Role(r) for r in allowed_roles)
            if allowed_roles is not None
            else ALL_ROLES
        )
        if user.role in roles:
            return GuardDecision.allow()
        return GuardDecision.deny(INSUFFICIENT_ROLE)
