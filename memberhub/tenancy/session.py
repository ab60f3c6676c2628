"""
Session Manager.

Owns the current session: the authenticated user, the resolved
organization and the loading flags. Only the organization is persisted;
the user is re-derived from the backend's own session on every start.

Usage:
    session = SessionManager(client, TenantResolver(client), storage=storage)

    if not session.state.is_initialized:
        await session.initialize(RequestContext("acme.example.com"))

    user = await session.login("jane@acme.org", "secret")

Callers must guard `initialize()` with `state.is_initialized`; there is
no internal lock against concurrent calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from memberhub.exceptions import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    StoreRequestError,
    TransportError,
)
from memberhub.observability.logging_config import set_tenant_id
from memberhub.tenancy.models import (
    Organization,
    Registration,
    Role,
    User,
    UserStatus,
)
from memberhub.tenancy.persistence import (
    STORAGE_NAME,
    MemoryStorage,
    Storage,
    load_organization,
    save_organization,
)
from memberhub.tenancy.resolver import RequestContext, TenantResolver

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    user: Optional[User] = None
    organization: Optional[Organization] = None
    is_loading: bool = False
    is_initialized: bool = False


class SessionManager:
    """
    Holds and mutates the single session-and-tenant state.

    Args:
        client: Remote store client; its auth store holds the backend session.
        resolver: Tenant resolver used by `initialize()`.
        storage: Where the organization slot is persisted.
        auth_collection: Collection users authenticate against.
    """

    def __init__(
        self,
        client: Any,
        resolver: TenantResolver,
        *,
        storage: Optional[Storage] = None,
        auth_collection: str = "users",
        storage_name: str = STORAGE_NAME,
    ):
        self.client = client
        self.resolver = resolver
        self.storage = storage if storage is not None else MemoryStorage()
        self.auth_collection = auth_collection
        self.storage_name = storage_name
        self._tenant_tag: Optional[str] = None
        self.state = SessionState(
            organization=load_organization(self.storage, storage_name)
        )

    # ── Read-only views ──────────────────────────────────────

    @property
    def user(self) -> Optional[User]:
        return self.state.user

    @property
    def organization(self) -> Optional[Organization]:
        return self.state.organization

    @property
    def is_authenticated(self) -> bool:
        return self.state.user is not None

    @property
    def tenant_tag(self) -> Optional[str]:
        """Tenant identifier attached to store calls issued from now on."""
        return self._tenant_tag

    def require_organization(self, operation: str) -> Organization:
        """Return the resolved organization or raise PreconditionError."""
        organization = self.state.organization
        if organization is None:
            raise PreconditionError(
                "No tenant context", operation=operation
            )
        return organization

    # ── Internal mutation ────────────────────────────────────

    def _tag(self, tenant_id: Optional[str]) -> None:
        self._tenant_tag = tenant_id
        set_tenant_id(tenant_id)

    def _store_organization(self, organization: Optional[Organization]) -> None:
        self.state.organization = organization
        save_organization(self.storage, organization, self.storage_name)

    # ── Operations ───────────────────────────────────────────

    async def initialize(self, request: Optional[RequestContext]) -> SessionState:
        """
        Resolve the tenant, tag the client, then reconcile the backend session.

        Always finishes with is_initialized=True and is_loading=False. An
        unexpected failure leaves the fallback organization in place.
        """
        self.state.is_loading = True
        try:
            organization = await self.resolver.resolve(request)

            if organization is None:
                # A hydrated organization may belong to another host.
                self._tag(None)
                self.state.organization = None
            else:
                # Tag before the session check so it never runs untagged.
                self._tag(None if organization.is_fallback else organization.id)
                self._store_organization(organization)

            await self._restore_user(organization)

            logger.info(
                "session_initialized",
                extra={
                    "org_id": self.state.organization.id if self.state.organization else None,
                    "authenticated": self.is_authenticated,
                },
            )
        except Exception:
            logger.exception("Session initialization failed; using fallback organization")
            self._tag(None)
            self.state.organization = Organization.fallback()
            try:
                save_organization(self.storage, None, self.storage_name)
            except OSError as e:
                logger.warning(f"Could not clear stored organization: {e}")
        finally:
            self.state.is_initialized = True
            self.state.is_loading = False
        return self.state

    async def _restore_user(self, organization: Optional[Organization]) -> None:
        auth_store = self.client.auth_store
        if not auth_store.is_valid:
            if auth_store.token:
                auth_store.clear()
            return

        if organization is None:
            auth_store.clear()
            return

        try:
            result = await self.client.auth_refresh(
                self.auth_collection, tenant=self._tenant_tag
            )
            user = User.model_validate(result.get("record") or {})
        except (StoreRequestError, NotFoundError, ValidationError) as e:
            logger.info(f"Discarding stored session: {e}")
            auth_store.clear()
            return
        except TransportError as e:
            logger.warning(f"Could not validate stored session: {e}")
            return

        if user.tenant_id == organization.id or organization.is_fallback:
            self.state.user = user
        else:
            logger.warning(
                "session_tenant_mismatch",
                extra={
                    "user_id": user.id,
                    "user_tenant_id": user.tenant_id,
                    "org_id": organization.id,
                },
            )
            auth_store.clear()

    async def login(self, email: str, password: str) -> User:
        """
        Authenticate against the resolved organization.

        Raises:
            PreconditionError: No organization resolved yet.
            AuthorizationError: Credentials belong to another organization.
            StoreError: Rejected credentials or transport failure.
        """
        organization = self.require_organization("login")
        self.state.is_loading = True
        try:
            result = await self.client.auth_with_password(
                self.auth_collection, email, password, tenant=organization.id
            )
            try:
                user = User.model_validate(result.get("record") or {})
            except ValidationError as e:
                self.client.auth_store.clear()
                raise StoreRequestError(
                    "Malformed auth record returned by the backend",
                    collection=self.auth_collection,
                ) from e

            if user.tenant_id != organization.id:
                self.client.auth_store.clear()
                logger.warning(
                    "login_rejected_wrong_tenant",
                    extra={
                        "email": email,
                        "org_id": organization.id,
                        "user_tenant_id": user.tenant_id,
                    },
                )
                raise AuthorizationError(
                    "Credentials valid for a different organization",
                    tenant_id=organization.id,
                    user_tenant_id=user.tenant_id,
                )

            self.state.user = user
            logger.info(
                "login_success",
                extra={"user_id": user.id, "email": email, "org_id": organization.id},
            )
            return user
        finally:
            self.state.is_loading = False

    async def register(self, data: Registration | dict[str, Any]) -> User:
        """
        Create a new member in the resolved organization.

        New users are always role=member, status=pending; caller-supplied
        values for either are ignored. The new user is not signed in.
        """
        organization = self.require_organization("register")
        self.state.is_loading = True
        try:
            registration = (
                data if isinstance(data, Registration)
                else Registration.model_validate(data)
            )
            payload = registration.model_dump(
                mode="json", exclude_none=True, exclude={"password_confirm"}
            )
            payload["passwordConfirm"] = registration.password_confirm
            payload["tenant_id"] = organization.id
            payload["role"] = Role.MEMBER.value
            payload["status"] = UserStatus.PENDING.value

            record = await self.client.create(
                self.auth_collection, payload, tenant=organization.id
            )
            user = User.model_validate(record)
            logger.info(
                "user_registered",
                extra={"user_id": user.id, "email": user.email, "org_id": organization.id},
            )
            return user
        finally:
            self.state.is_loading = False

    def logout(self) -> None:
        """Drop the backend session and the user. The organization is kept."""
        user_id = self.state.user.id if self.state.user else None
        self.client.auth_store.clear()
        self.state.user = None
        logger.info("logout", extra={"user_id": user_id})

    def set_organization(self, organization: Organization) -> None:
        """Switch the active organization and re-tag. The user is untouched."""
        self._store_organization(organization)
        self._tag(organization.id)
        logger.info(
            "organization_switched",
            extra={"org_id": organization.id, "subdomain": organization.subdomain},
        )
