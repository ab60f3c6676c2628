"""
Custom exception hierarchy for MemberHub.

Structured error handling with clear categories:
- Configuration errors (caught at startup)
- Remote store errors (not found, transport, rejected requests)
- Authentication / authorization failures
- Precondition failures (no tenant resolved yet)

Resolution-phase code absorbs store errors into absence values; write
operations (login, register, create, update) let them reach the caller.

Usage:
    from memberhub.exceptions import NotFoundError, TransportError

    try:
        org = await client.get_first_list_item("organizations", flt)
    except NotFoundError:
        org = None
"""

from __future__ import annotations

from typing import Optional


class MemberHubError(Exception):
    """
    Base exception for all MemberHub errors.

    All custom exceptions inherit from this, so you can catch
    `MemberHubError` to handle any application-specific error.
    """

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


# ── Configuration Errors ──────────────────────────────────────────


class ConfigurationError(MemberHubError):
    """
    Raised when the application config is invalid or missing.

    Examples:
    - YAML file that does not parse to a mapping
    - Backend URL that is not an http(s) URL
    """

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.config_path = config_path


# ── Remote Store Errors ───────────────────────────────────────────


class StoreError(MemberHubError):
    """
    Base for failures talking to the remote store.
    """

    def __init__(
        self,
        message: str,
        *,
        collection: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.collection = collection
        self.status_code = status_code


class NotFoundError(StoreError):
    """
    A requested tenant or record does not exist.

    Usually recovered locally and turned into an absence value.
    """


class TransportError(StoreError):
    """
    The backend is unreachable, timed out, or failed with a 5xx.
    """


class StoreRequestError(StoreError):
    """
    The backend rejected a request (validation failure, bad filter, etc).

    `details` carries the backend's error payload when one was returned.
    """


class AuthenticationError(StoreRequestError):
    """
    Credentials were rejected, or the auth token is missing or expired.
    """


# ── Session Errors ────────────────────────────────────────────────


class AuthorizationError(MemberHubError):
    """
    Credentials are valid but belong to a different organization.

    The session is cleared before this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        tenant_id: Optional[str] = None,
        user_tenant_id: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.tenant_id = tenant_id
        self.user_tenant_id = user_tenant_id


class PreconditionError(MemberHubError):
    """
    An operation needs a resolved tenant and none is available.

    Raised before any state is mutated.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.operation = operation
