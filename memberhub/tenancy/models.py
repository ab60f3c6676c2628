"""
Tenancy Data Models.

Pydantic models for organizations, members, memberships, mailing lists
and dashboard aggregates. Records come straight from the remote store,
so unknown fields (collectionId, collectionName, ...) are ignored and
timestamps are kept as the backend's strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FALLBACK_ORG_ID = "dev-org"


# ── Enums ────────────────────────────────────────────────────


class OrgStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Role(str, Enum):
    """
    Member roles.

    Privilege is a lattice, not a ladder: super_admin covers admin,
    member is incomparable to both.
    """
    MEMBER = "member"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    def satisfies(self, required: Role) -> bool:
        """Check whether this role grants the capability of `required`."""
        if self == required:
            return True
        return required == Role.ADMIN and self == Role.SUPER_ADMIN


class UserStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class MailingListType(str, Enum):
    MANDATORY = "mandatory"
    OPTIONAL = "optional"


ALL_ROLES: frozenset[Role] = frozenset(Role)


class StoreRecord(BaseModel):
    """Common fields of every record returned by the store."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    id: str = ""
    created: Optional[str] = None
    updated: Optional[str] = None


# ── Organization ─────────────────────────────────────────────


class Organization(StoreRecord):
    """An organization (tenant)."""

    name: str = ""
    subdomain: str
    status: OrgStatus = OrgStatus.ACTIVE
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    contact_email: Optional[str] = None
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("subdomain")
    @classmethod
    def normalize_subdomain(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("settings", mode="before")
    @classmethod
    def default_settings(cls, v: Any) -> Any:
        return v or {}

    @property
    def is_fallback(self) -> bool:
        return self.id == FALLBACK_ORG_ID

    @property
    def is_active(self) -> bool:
        return self.status == OrgStatus.ACTIVE

    @classmethod
    def fallback(cls) -> Organization:
        """The synthetic organization used on local hosts with no real tenant."""
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            id=FALLBACK_ORG_ID,
            name="Development Organization",
            subdomain=FALLBACK_ORG_ID,
            status=OrgStatus.ACTIVE,
            created=now,
            updated=now,
        )


# ── User ─────────────────────────────────────────────────────


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


class User(StoreRecord):
    """A member of an organization."""

    email: str = ""
    name: str = ""
    tenant_id: str = ""
    role: Role = Role.MEMBER
    status: UserStatus = UserStatus.PENDING
    phone: Optional[str] = None
    address: Optional[Address] = None
    preferences: dict[str, Any] = Field(default_factory=dict)
    avatar: Optional[str] = None
    expand: dict[str, Any] = Field(default_factory=dict)

    @field_validator("address", mode="before")
    @classmethod
    def empty_address(cls, v: Any) -> Any:
        return v or None

    @field_validator("preferences", "expand", mode="before")
    @classmethod
    def empty_dict(cls, v: Any) -> Any:
        return v or {}

    @property
    def organization(self) -> Optional[Organization]:
        """The expanded tenant record, when the query asked for it."""
        raw = self.expand.get("tenant_id")
        return Organization.model_validate(raw) if raw else None


class Registration(BaseModel):
    """
    Input for self-registration.

    Role and status are not accepted from the caller; they are fixed by
    the session manager when the record is created.
    """

    model_config = ConfigDict(extra="ignore")

    email: str
    password: str
    password_confirm: str
    name: str
    phone: Optional[str] = None
    address: Optional[Address] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("A valid email address is required")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> Registration:
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match")
        return self


# ── Memberships ──────────────────────────────────────────────


class MembershipType(StoreRecord):
    tenant_id: str = ""
    name: str
    description: Optional[str] = None
    price: float = 0.0
    duration_months: int = 12
    benefits: list[str] = Field(default_factory=list)
    active: bool = True

    @field_validator("benefits", mode="before")
    @classmethod
    def empty_benefits(cls, v: Any) -> Any:
        return v or []


class Membership(StoreRecord):
    tenant_id: str = ""
    user_id: str
    membership_type_id: str
    status: MembershipStatus = MembershipStatus.ACTIVE
    start_date: str = ""
    end_date: str = ""
    auto_renew: bool = False
    payment_reference: Optional[str] = None
    expand: dict[str, Any] = Field(default_factory=dict)

    @field_validator("expand", mode="before")
    @classmethod
    def empty_expand(cls, v: Any) -> Any:
        return v or {}

    @property
    def membership_type(self) -> Optional[MembershipType]:
        raw = self.expand.get("membership_type_id")
        return MembershipType.model_validate(raw) if raw else None

    @property
    def user(self) -> Optional[User]:
        raw = self.expand.get("user_id")
        return User.model_validate(raw) if raw else None


# ── Mailing Lists ────────────────────────────────────────────


class MailingList(StoreRecord):
    tenant_id: str = ""
    name: str
    description: Optional[str] = None
    type: MailingListType = MailingListType.OPTIONAL
    active: bool = True


class ListSubscription(StoreRecord):
    tenant_id: str = ""
    user_id: str
    list_id: str
    subscribed: bool = True
    expand: dict[str, Any] = Field(default_factory=dict)

    @field_validator("expand", mode="before")
    @classmethod
    def empty_expand(cls, v: Any) -> Any:
        return v or {}

    @property
    def mailing_list(self) -> Optional[MailingList]:
        raw = self.expand.get("list_id")
        return MailingList.model_validate(raw) if raw else None


# ── Aggregates ───────────────────────────────────────────────


class DashboardStats(BaseModel):
    """Admin dashboard counters for one tenant."""

    total_members: int = 0
    active_members: int = 0
    pending_members: int = 0
    active_memberships: int = 0
    expiring_memberships: int = 0


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a paginated list."""

    page: int = 1
    per_page: int = 30
    total_items: int = 0
    total_pages: int = 0
    items: list[T] = Field(default_factory=list)
