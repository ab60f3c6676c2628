"""
Tests for memberhub/tenancy/guard.py

Pure decision tests over SessionState; no store involved.
"""

from __future__ import annotations

import pytest

from memberhub.tenancy.guard import (
    AUTHENTICATION_REQUIRED,
    INSUFFICIENT_ROLE,
    GuardOutcome,
    RouteGuard,
)
from memberhub.tenancy.models import Role, User
from memberhub.tenancy.session import SessionState


def _state(role: str | None = None, initialized: bool = True, loading: bool = False):
    user = User(id="u1", email="u@x.org", tenant_id="t1", role=role) if role else None
    return SessionState(user=user, is_initialized=initialized, is_loading=loading)


class TestPending:

    def test_uninitialized_is_pending(self):
        decision = RouteGuard.check(_state(initialized=False))
        assert decision.is_pending
        assert decision.outcome == GuardOutcome.PENDING

    def test_uninitialized_is_pending_even_with_user(self):
        assert RouteGuard.check(_state("admin", initialized=False)).is_pending

    def test_loading_after_init_is_not_pending(self):
        decision = RouteGuard.check(_state("member", loading=True))
        assert decision.allowed


class TestAuthentication:

    def test_anonymous_denied_when_auth_required(self):
        decision = RouteGuard.check(_state())
        assert decision.denied
        assert decision.reason == AUTHENTICATION_REQUIRED

    def test_anonymous_allowed_on_public_view(self):
        assert RouteGuard.check(_state(), require_auth=False).allowed

    def test_anonymous_allowed_on_public_view_even_with_role(self):
        decision = RouteGuard.check(_state(), require_auth=False, required_role="admin")
        assert decision.allowed

    def test_any_role_allowed_by_default(self):
        for role in Role:
            assert RouteGuard.check(_state(role.value)).allowed


class TestRequiredRole:

    @pytest.mark.parametrize(
        "role,required,allowed",
        [
            ("member", "member", True),
            ("member", "admin", False),
            ("member", "super_admin", False),
            ("admin", "admin", True),
            ("admin", "member", False),
            ("admin", "super_admin", False),
            ("super_admin", "admin", True),
            ("super_admin", "super_admin", True),
            ("super_admin", "member", False),
        ],
    )
    def test_lattice(self, role, required, allowed):
        decision = RouteGuard.check(_state(role), required_role=required)
        assert decision.allowed is allowed
        if not allowed:
            assert decision.reason == INSUFFICIENT_ROLE

    def test_accepts_enum(self):
        assert RouteGuard.check(_state("super_admin"), required_role=Role.ADMIN).allowed

    def test_unknown_role_name_raises(self):
        with pytest.raises(ValueError):
            RouteGuard.check(_state("admin"), required_role="owner")


class TestAllowedRoles:

    def test_membership(self):
        decision = RouteGuard.check(_state("admin"), allowed_roles=["admin", "super_admin"])
        assert decision.allowed

    def test_not_in_set(self):
        decision = RouteGuard.check(_state("member"), allowed_roles=["admin"])
        assert decision.denied
        assert decision.reason == INSUFFICIENT_ROLE

    def test_no_lattice_for_allowed_roles(self):
        decision = RouteGuard.check(_state("super_admin"), allowed_roles=["admin"])
        assert decision.denied

    def test_required_role_takes_precedence(self):
        decision = RouteGuard.check(
            _state("super_admin"), required_role="admin", allowed_roles=["member"]
        )
        assert decision.allowed

    def test_empty_set_denies_everyone(self):
        assert RouteGuard.check(_state("super_admin"), allowed_roles=[]).denied
