"""
Composition root.

Builds the store client, resolver, session manager and query facade
from an AppConfig. The client is constructed here and passed by
reference; nothing in the package holds a global instance.

Usage:
    ctx = build_app(load_config())
    await ctx.session.initialize(RequestContext("acme.example.com"))
    stats = await ctx.queries.get_dashboard_stats()
    await ctx.aclose()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from memberhub.config.schema import AppConfig
from memberhub.integrations.pocketbase_client import AuthStore, PocketBaseClient
from memberhub.tenancy.persistence import JsonFileStorage, MemoryStorage, Storage
from memberhub.tenancy.queries import DomainQueries
from memberhub.tenancy.resolver import TenantResolver
from memberhub.tenancy.session import SessionManager


@dataclass
class AppContext:
    config: AppConfig
    client: Any
    resolver: TenantResolver
    session: SessionManager
    queries: DomainQueries

    async def aclose(self) -> None:
        await self.client.aclose()


def build_app(
    config: AppConfig,
    *,
    client: Optional[Any] = None,
    storage: Optional[Storage] = None,
    auth_store: Optional[AuthStore] = None,
) -> AppContext:
    """
    Wire the application together.

    Args:
        config: Validated configuration.
        client: Store client to use instead of a PocketBaseClient (tests, fakes).
        storage: Session slot storage; defaults to config.storage_path or memory.
        auth_store: Backend token store; defaults to config.auth_store_path.
    """
    if client is None:
        client = PocketBaseClient(
            config.backend_url,
            timeout=config.request_timeout,
            tenant_header=config.tenant_header,
            auth_store=(
                auth_store if auth_store is not None
                else AuthStore(config.auth_store_path)
            ),
        )

    if storage is None:
        storage = (
            JsonFileStorage(config.storage_path)
            if config.storage_path
            else MemoryStorage()
        )

    resolver = TenantResolver(
        client,
        dev_hosts=config.dev_hosts,
        override_param=config.tenant_query_param,
    )
    session = SessionManager(
        client,
        resolver,
        storage=storage,
        auth_collection=config.auth_collection,
    )
    queries = DomainQueries(
        client, session, expiring_window_days=config.expiring_window_days
    )
    return AppContext(
        config=config,
        client=client,
        resolver=resolver,
        session=session,
        queries=queries,
    )
