"""
Domain Query Facade.

Typed operations for the dashboards, built on the remote store client
and always run in the context of the session's current tenant:

- every call carries the session's tenant tag;
- every create of a tenant-scoped record gets `tenant_id` from the
  session's organization, overriding anything the caller passed;
- reads are filtered by `tenant_id` once a real tenant is resolved.

Usage:
    queries = DomainQueries(client, session)
    stats = await queries.get_dashboard_stats()
    page = await queries.list_users(search="smith")
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Type, TypeVar

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from memberhub.exceptions import MemberHubError, NotFoundError
from memberhub.integrations.filters import Filter, all_of, any_of, eq, like, lte
from memberhub.tenancy.models import (
    DashboardStats,
    ListSubscription,
    MailingList,
    Membership,
    MembershipStatus,
    MembershipType,
    Organization,
    Page,
    User,
    UserStatus,
)
from memberhub.tenancy.session import SessionManager

logger = logging.getLogger(__name__)

ORGANIZATIONS = "organizations"
USERS = "users"
MEMBERSHIP_TYPES = "membership_types"
MEMBERSHIPS = "memberships"
MAILING_LISTS = "mailing_lists"
LIST_SUBSCRIPTIONS = "list_subscriptions"

EXPIRING_WINDOW_DAYS = 30

M = TypeVar("M", bound=BaseModel)


def _page(result: dict[str, Any], model: Type[M]) -> Page[M]:
    return Page[model](
        page=result.get("page", 1),
        per_page=result.get("perPage", 0),
        total_items=result.get("totalItems", 0),
        total_pages=result.get("totalPages", 0),
        items=[model.model_validate(item) for item in result.get("items") or []],
    )


def _end_of_day(day: date) -> str:
    """Inclusive upper bound for a date field compared at date precision."""
    return f"{day.isoformat()} 23:59:59.999Z"


class DomainQueries:
    """Tenant-scoped helper operations over the remote store."""

    def __init__(
        self,
        client: Any,
        session: SessionManager,
        *,
        expiring_window_days: int = EXPIRING_WINDOW_DAYS,
    ):
        self.client = client
        self.session = session
        self.expiring_window_days = expiring_window_days

    # ── Tenant plumbing ──────────────────────────────────────

    @property
    def _tenant(self) -> Optional[str]:
        return self.session.tenant_tag

    def _scope(self) -> Optional[Filter]:
        """tenant_id filter for reads, once a real tenant is resolved."""
        organization = self.session.organization
        if organization is None or organization.is_fallback:
            return None
        return eq("tenant_id", organization.id)

    def _with_tenant(self, data: dict[str, Any], operation: str) -> dict[str, Any]:
        organization = self.session.require_organization(operation)
        return {**data, "tenant_id": organization.id}

    # ── Organizations ────────────────────────────────────────

    async def get_organization(self, org_id: str) -> Optional[Organization]:
        try:
            record = await self.client.get_one(ORGANIZATIONS, org_id, tenant=self._tenant)
        except MemberHubError as e:
            logger.error(f"Failed to get organization {org_id}: {e}")
            return None
        return Organization.model_validate(record)

    async def get_organization_by_subdomain(self, subdomain: str) -> Optional[Organization]:
        try:
            result = await self.client.get_list(
                ORGANIZATIONS, 1, 1,
                filter=eq("subdomain", subdomain.strip().lower()),
                tenant=self._tenant,
            )
        except MemberHubError as e:
            logger.error(f"Failed to get organization by subdomain {subdomain}: {e}")
            return None
        items = result.get("items") or []
        return Organization.model_validate(items[0]) if items else None

    # ── Users ────────────────────────────────────────────────

    async def list_users(
        self,
        page: int = 1,
        per_page: int = 50,
        search: str = "",
        status: Optional[UserStatus | str] = None,
    ) -> Page[User]:
        """Users of the current tenant, newest first, with their organization expanded."""
        search = search.strip()
        text_filter = (
            any_of(like("name", search), like("email", search)) if search else None
        )
        status_filter = eq("status", UserStatus(status).value) if status else None
        result = await self.client.get_list(
            USERS, page, per_page,
            filter=all_of(self._scope(), text_filter, status_filter),
            sort="-created",
            expand=["tenant_id"],
            tenant=self._tenant,
        )
        return _page(result, User)

    async def update_user_status(self, user_id: str, status: UserStatus | str) -> User:
        status = UserStatus(status)
        record = await self.client.update(
            USERS, user_id, {"status": status.value}, tenant=self._tenant
        )
        logger.info("user_status_updated", extra={"user_id": user_id, "status": status.value})
        return User.model_validate(record)

    # ── Membership types ─────────────────────────────────────

    async def list_membership_types(self) -> list[MembershipType]:
        records = await self.client.get_full_list(
            MEMBERSHIP_TYPES,
            filter=all_of(self._scope(), eq("active", True)),
            sort="price",
            tenant=self._tenant,
        )
        return [MembershipType.model_validate(r) for r in records]

    async def create_membership_type(self, data: dict[str, Any]) -> MembershipType:
        payload = self._with_tenant(data, "create_membership_type")
        record = await self.client.create(MEMBERSHIP_TYPES, payload, tenant=self._tenant)
        return MembershipType.model_validate(record)

    async def update_membership_type(
        self, type_id: str, data: dict[str, Any]
    ) -> MembershipType:
        updates = {k: v for k, v in data.items() if k != "tenant_id"}
        record = await self.client.update(
            MEMBERSHIP_TYPES, type_id, updates, tenant=self._tenant
        )
        return MembershipType.model_validate(record)

    # ── Memberships ──────────────────────────────────────────

    async def list_memberships(
        self,
        page: int = 1,
        per_page: int = 50,
        *,
        status: Optional[MembershipStatus | str] = None,
        user_id: Optional[str] = None,
    ) -> Page[Membership]:
        result = await self.client.get_list(
            MEMBERSHIPS, page, per_page,
            filter=all_of(
                self._scope(),
                eq("status", MembershipStatus(status).value) if status else None,
                eq("user_id", user_id) if user_id else None,
            ),
            sort="-created",
            expand=["user_id", "membership_type_id"],
            tenant=self._tenant,
        )
        return _page(result, Membership)

    async def create_membership(self, data: dict[str, Any]) -> Membership:
        payload = self._with_tenant(data, "create_membership")
        record = await self.client.create(MEMBERSHIPS, payload, tenant=self._tenant)
        logger.info(
            "membership_created",
            extra={"user_id": payload.get("user_id"), "membership_id": record.get("id")},
        )
        return Membership.model_validate(record)

    async def update_membership(self, membership_id: str, data: dict[str, Any]) -> Membership:
        updates = {k: v for k, v in data.items() if k != "tenant_id"}
        record = await self.client.update(
            MEMBERSHIPS, membership_id, updates, tenant=self._tenant
        )
        return Membership.model_validate(record)

    async def grant_membership(
        self,
        user: User,
        membership_type: MembershipType,
        *,
        start: Optional[date] = None,
        auto_renew: bool = False,
    ) -> Membership:
        """
        Give a user an active membership of the given type.

        Runs from `start` (today by default) for the type's duration.
        A pending user is activated afterwards.
        """
        start = start or datetime.now(timezone.utc).date()
        end = start + relativedelta(months=membership_type.duration_months)
        membership = await self.create_membership({
            "user_id": user.id,
            "membership_type_id": membership_type.id,
            "status": MembershipStatus.ACTIVE.value,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "auto_renew": auto_renew,
        })
        if user.status == UserStatus.PENDING:
            await self.update_user_status(user.id, UserStatus.ACTIVE)
        return membership

    # ── Mailing lists ────────────────────────────────────────

    async def list_mailing_lists(self) -> list[MailingList]:
        records = await self.client.get_full_list(
            MAILING_LISTS,
            filter=all_of(self._scope(), eq("active", True)),
            sort="name",
            tenant=self._tenant,
        )
        return [MailingList.model_validate(r) for r in records]

    async def create_mailing_list(self, data: dict[str, Any]) -> MailingList:
        payload = self._with_tenant(data, "create_mailing_list")
        record = await self.client.create(MAILING_LISTS, payload, tenant=self._tenant)
        return MailingList.model_validate(record)

    async def get_user_subscriptions(self, user_id: str) -> list[ListSubscription]:
        records = await self.client.get_full_list(
            LIST_SUBSCRIPTIONS,
            filter=all_of(self._scope(), eq("user_id", user_id)),
            expand=["list_id"],
            tenant=self._tenant,
        )
        return [ListSubscription.model_validate(r) for r in records]

    async def update_subscription(
        self, user_id: str, list_id: str, subscribed: bool
    ) -> ListSubscription:
        """Flip an existing subscription, or create one if the user has none."""
        try:
            existing = await self.client.get_first_list_item(
                LIST_SUBSCRIPTIONS,
                all_of(self._scope(), eq("user_id", user_id), eq("list_id", list_id)),
                tenant=self._tenant,
            )
        except NotFoundError:
            payload = self._with_tenant(
                {"user_id": user_id, "list_id": list_id, "subscribed": subscribed},
                "update_subscription",
            )
            record = await self.client.create(
                LIST_SUBSCRIPTIONS, payload, tenant=self._tenant
            )
        else:
            record = await self.client.update(
                LIST_SUBSCRIPTIONS, existing["id"], {"subscribed": subscribed},
                tenant=self._tenant,
            )
        return ListSubscription.model_validate(record)

    # ── Dashboard ────────────────────────────────────────────

    async def _count(self, collection: str, flt: Filter) -> int:
        result = await self.client.get_list(
            collection, 1, 1, filter=flt, tenant=self._tenant
        )
        return int(result.get("totalItems", 0))

    async def get_dashboard_stats(self, *, as_of: Optional[date] = None) -> DashboardStats:
        """
        Member and membership counters for the current tenant.

        Raises:
            PreconditionError: No tenant resolved.
        """
        organization = self.session.require_organization("get_dashboard_stats")
        tenant = eq("tenant_id", organization.id)
        today = as_of or datetime.now(timezone.utc).date()
        cutoff = today + timedelta(days=self.expiring_window_days)
        active_memberships = tenant & eq("status", MembershipStatus.ACTIVE.value)

        return DashboardStats(
            total_members=await self._count(USERS, tenant),
            active_members=await self._count(
                USERS, tenant & eq("status", UserStatus.ACTIVE.value)
            ),
            pending_members=await self._count(
                USERS, tenant & eq("status", UserStatus.PENDING.value)
            ),
            active_memberships=await self._count(MEMBERSHIPS, active_memberships),
            expiring_memberships=await self._count(
                MEMBERSHIPS, active_memberships & lte("end_date", _end_of_day(cutoff))
            ),
        )
