"""
Tenant Resolver.

Determines which organization a request belongs to:

1. No request context            -> None
2. Local development host
   a. ?tenant=<subdomain>         -> active org with that subdomain, or None
   b. otherwise                   -> first active org in store order
   c. nothing found / unreachable -> the fixed fallback organization
3. Any other host                 -> active org whose subdomain is the first
                                     hostname label, or None

Resolution is read-only and never raises: store errors are logged and
treated as "no result".
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

import httpx
from pydantic import ValidationError

from memberhub.exceptions import MemberHubError, NotFoundError
from memberhub.integrations.filters import eq
from memberhub.tenancy.models import Organization, OrgStatus

logger = logging.getLogger(__name__)

ORGANIZATIONS = "organizations"
DEFAULT_DEV_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True)
class RequestContext:
    """The ambient request information the resolver needs."""

    hostname: Optional[str]
    query: Mapping[str, str] = field(default_factory=dict)

    @property
    def host(self) -> str:
        """Lowercased hostname without port."""
        host = (self.hostname or "").strip().lower()
        if host.startswith("["):
            return host[1:].split("]", 1)[0]
        if host.count(":") == 1:
            host = host.split(":", 1)[0]
        return host.rstrip(".")

    @property
    def subdomain(self) -> str:
        """First dot-delimited label of the host."""
        return self.host.split(".", 1)[0]

    @classmethod
    def from_url(cls, url: str) -> RequestContext:
        """Build a context from a full URL, e.g. http://localhost:3000/?tenant=acme."""
        parsed = httpx.URL(url)
        return cls(hostname=parsed.host, query=dict(parsed.params))


def is_local_host(host: str, dev_hosts: Iterable[str] = DEFAULT_DEV_HOSTS) -> bool:
    """True for localhost, *.localhost, loopback addresses and configured dev hosts."""
    if not host:
        return False
    if host in dev_hosts or host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class TenantResolver:
    """
    Resolves the active organization for a request.

    Args:
        client: Remote store client (PocketBaseClient or a fake with the
                same get_list / get_first_list_item interface).
        dev_hosts: Hostnames treated as local development.
        override_param: Query parameter naming an explicit tenant on local hosts.
    """

    def __init__(
        self,
        client: Any,
        *,
        dev_hosts: Iterable[str] = DEFAULT_DEV_HOSTS,
        override_param: str = "tenant",
    ):
        self.client = client
        self.dev_hosts = tuple(h.lower() for h in dev_hosts)
        self.override_param = override_param

    async def resolve(self, request: Optional[RequestContext]) -> Optional[Organization]:
        if request is None or not request.host:
            logger.debug("tenant_resolution_skipped: no request context")
            return None

        host = request.host
        if is_local_host(host, self.dev_hosts):
            return await self._resolve_local(request)

        org = await self.find_active_by_subdomain(request.subdomain)
        if org is None:
            logger.info(
                "tenant_not_found",
                extra={"host": host, "subdomain": request.subdomain},
            )
        return org

    async def find_active_by_subdomain(self, subdomain: str) -> Optional[Organization]:
        """Look up an active organization by subdomain. None on miss or error."""
        if not subdomain:
            return None
        flt = eq("subdomain", subdomain.lower()) & eq("status", OrgStatus.ACTIVE.value)
        try:
            record = await self.client.get_first_list_item(ORGANIZATIONS, flt)
            return Organization.model_validate(record)
        except NotFoundError:
            return None
        except (MemberHubError, ValidationError) as e:
            logger.warning(
                f"Organization '{subdomain}' lookup failed: {e}",
                extra={"subdomain": subdomain},
            )
            return None

    async def _resolve_local(self, request: RequestContext) -> Optional[Organization]:
        override = (request.query.get(self.override_param) or "").strip()
        if override:
            logger.debug("tenant_override", extra={"subdomain": override})
            return await self.find_active_by_subdomain(override)

        try:
            result = await self.client.get_list(
                ORGANIZATIONS, 1, 1, filter=eq("status", OrgStatus.ACTIVE.value)
            )
        except MemberHubError as e:
            logger.warning(
                f"Store not accessible, using development fallback organization: {e}"
            )
            return Organization.fallback()

        items = result.get("items") or []
        if items:
            try:
                return Organization.model_validate(items[0])
            except ValidationError as e:
                logger.warning(f"Ignoring malformed organization record: {e}")

        logger.warning("No organizations found. Using development fallback.")
        return Organization.fallback()
