"""
PocketBase client wrapper for MemberHub.

Thin async client over the backend's REST API: collection-scoped list,
get, create and update, password auth and session refresh. It owns the
auth token and the authenticated record (AuthStore).

There is no mutable request hook for tenant tagging. Every call takes
an explicit `tenant` argument which is sent as the tenant header when
the request is dispatched, so re-tagging never touches calls already
in flight.

API Reference: https://pocketbase.io/docs/api-records/
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from memberhub.exceptions import (
    AuthenticationError,
    NotFoundError,
    StoreRequestError,
    TransportError,
)
from memberhub.integrations.filters import FilterLike, to_filter_string

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8090"
DEFAULT_TENANT_HEADER = "X-Tenant-ID"
FULL_LIST_BATCH = 200


class AuthStore:
    """
    Holds the bearer token and the authenticated record.

    Optionally backed by a JSON file so a backend session survives a
    restart. The file is the client's own cache; callers re-validate it
    with `auth_refresh()` before trusting the record.
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path else None
        self.token: str = ""
        self.record: Optional[dict[str, Any]] = None
        if self.path and self.path.exists():
            self._load()

    @property
    def is_valid(self) -> bool:
        """True if a token is present and its `exp` claim is in the future."""
        if not self.token:
            return False
        try:
            claims = jwt.get_unverified_claims(self.token)
        except JOSEError:
            return False
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return False
        return exp > datetime.now(timezone.utc).timestamp()

    def save(self, token: str, record: Optional[dict[str, Any]]) -> None:
        self.token = token
        self.record = record
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps({"token": token, "record": record}))

    def clear(self) -> None:
        self.token = ""
        self.record = None
        if self.path and self.path.exists():
            self.path.unlink()

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable auth store {self.path}: {e}")
            return
        if isinstance(data, dict):
            self.token = data.get("token") or ""
            self.record = data.get("record")


class PocketBaseClient:
    """
    Async client for a PocketBase-compatible backend.

    Usage:
        client = PocketBaseClient("https://pb.example.com")
        page = await client.get_list(
            "users", 1, 50, filter=eq("status", "active"), tenant=org_id
        )
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 30.0,
        tenant_header: str = DEFAULT_TENANT_HEADER,
        auth_store: Optional[AuthStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.tenant_header = tenant_header
        self.auth_store = auth_store or AuthStore()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> PocketBaseClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self, tenant: Optional[str]) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.auth_store.token:
            headers["Authorization"] = f"Bearer {self.auth_store.token}"
        if tenant:
            headers[self.tenant_header] = tenant
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        collection: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
        tenant: Optional[str] = None,
    ) -> Any:
        headers = self._headers(tenant)
        clean_params = (
            {k: v for k, v in params.items() if v is not None} if params else None
        )
        started = time.monotonic()

        try:
            response = await self._http.request(
                method, path, params=clean_params, json=body, headers=headers
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{method} {path} timed out", collection=collection
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {path} failed: {e}", collection=collection
            ) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            "store_request",
            extra={
                "method": method,
                "path": path,
                "collection": collection,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "tenant_id": tenant,
            },
        )

        payload = _json_or_empty(response)
        status = response.status_code

        if status >= 500:
            raise TransportError(
                f"{method} {path} returned {status}",
                collection=collection,
                status_code=status,
                details=payload,
            )
        if status == 404:
            raise NotFoundError(
                payload.get("message") or "The requested resource wasn't found.",
                collection=collection,
                status_code=status,
                details=payload,
            )
        if status in (401, 403):
            raise AuthenticationError(
                payload.get("message") or "Not authorized",
                collection=collection,
                status_code=status,
                details=payload,
            )
        if status >= 400:
            raise StoreRequestError(
                payload.get("message") or f"{method} {path} returned {status}",
                collection=collection,
                status_code=status,
                details=payload,
            )
        return payload

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def get_list(
        self,
        collection: str,
        page: int = 1,
        per_page: int = 30,
        *,
        filter: FilterLike = None,
        sort: Optional[str] = None,
        expand: Optional[Sequence[str]] = None,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        List records of a collection.

        Returns the backend's page envelope:
            {"page", "perPage", "totalItems", "totalPages", "items"}
        """
        params = {
            "page": page,
            "perPage": per_page,
            "filter": to_filter_string(filter),
            "sort": sort,
            "expand": ",".join(expand) if expand else None,
        }
        return await self._request(
            "GET",
            f"/api/collections/{collection}/records",
            collection=collection,
            params=params,
            tenant=tenant,
        )

    async def get_first_list_item(
        self,
        collection: str,
        filter: FilterLike,
        *,
        sort: Optional[str] = None,
        expand: Optional[Sequence[str]] = None,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Return the first record matching `filter`.

        Raises:
            NotFoundError: If nothing matches.
        """
        result = await self.get_list(
            collection, 1, 1, filter=filter, sort=sort, expand=expand, tenant=tenant
        )
        items = result.get("items") or []
        if not items:
            raise NotFoundError(
                "The requested resource wasn't found.",
                collection=collection,
                status_code=404,
                details={"filter": to_filter_string(filter)},
            )
        return items[0]

    async def get_full_list(
        self,
        collection: str,
        *,
        filter: FilterLike = None,
        sort: Optional[str] = None,
        expand: Optional[Sequence[str]] = None,
        batch: int = FULL_LIST_BATCH,
        tenant: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Fetch every matching record, following `totalPages` from the backend."""
        records: list[dict[str, Any]] = []
        page = 1
        while True:
            result = await self.get_list(
                collection,
                page,
                batch,
                filter=filter,
                sort=sort,
                expand=expand,
                tenant=tenant,
            )
            items = result.get("items") or []
            records.extend(items)
            # The backend may cap perPage below `batch`.
            if not items or page >= int(result.get("totalPages") or 0):
                return records
            page += 1

    async def get_one(
        self,
        collection: str,
        record_id: str,
        *,
        expand: Optional[Sequence[str]] = None,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/api/collections/{collection}/records/{record_id}",
            collection=collection,
            params={"expand": ",".join(expand) if expand else None},
            tenant=tenant,
        )

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        *,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/api/collections/{collection}/records",
            collection=collection,
            body=data,
            tenant=tenant,
        )

    async def update(
        self,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        *,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/api/collections/{collection}/records/{record_id}",
            collection=collection,
            body=data,
            tenant=tenant,
        )

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def auth_with_password(
        self,
        collection: str,
        identity: str,
        password: str,
        *,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Authenticate a record with identity + password.

        On success the token and record are saved in the auth store.

        Returns:
            {"token": str, "record": dict}
        """
        result = await self._request(
            "POST",
            f"/api/collections/{collection}/auth-with-password",
            collection=collection,
            body={"identity": identity, "password": password},
            tenant=tenant,
        )
        self.auth_store.save(result.get("token", ""), result.get("record"))
        return result

    async def auth_refresh(
        self,
        collection: str,
        *,
        tenant: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Re-validate the stored token against the backend.

        Returns a fresh {"token", "record"} and updates the auth store.

        Raises:
            AuthenticationError: If the backend no longer accepts the token.
        """
        if not self.auth_store.token:
            raise AuthenticationError("No auth token to refresh", collection=collection)
        result = await self._request(
            "POST",
            f"/api/collections/{collection}/auth-refresh",
            collection=collection,
            tenant=tenant,
        )
        self.auth_store.save(result.get("token", ""), result.get("record"))
        return result

    async def health(self) -> dict[str, Any]:
        """Backend health check."""
        return await self._request("GET", "/api/health")


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {"raw": response.text[:500]}
    return data if isinstance(data, dict) else {"data": data}
