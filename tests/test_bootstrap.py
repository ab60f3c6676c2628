"""
Tests for memberhub/bootstrap.py — wiring the app from config.
"""

from __future__ import annotations

import json

import pytest

from memberhub.bootstrap import build_app
from memberhub.config.schema import AppConfig
from memberhub.integrations.pocketbase_client import AuthStore, PocketBaseClient
from memberhub.tenancy.persistence import JsonFileStorage, MemoryStorage
from memberhub.tenancy.resolver import RequestContext
from memberhub.testing.fake_store import FakeStore

ACME = {"id": "org-acme", "name": "Acme Club", "subdomain": "acme", "status": "active"}


class TestBuildApp:

    @pytest.mark.asyncio
    async def test_default_client_is_pocketbase(self):
        ctx = build_app(AppConfig(backend_url="https://pb.example.com", tenant_header="X-Org"))
        try:
            assert isinstance(ctx.client, PocketBaseClient)
            assert ctx.client.base_url == "https://pb.example.com"
            assert ctx.client.tenant_header == "X-Org"
            assert isinstance(ctx.session.storage, MemoryStorage)
        finally:
            await ctx.aclose()

    def test_components_share_one_client(self):
        store = FakeStore()
        ctx = build_app(AppConfig(), client=store)
        assert ctx.resolver.client is store
        assert ctx.session.client is store
        assert ctx.queries.client is store
        assert ctx.queries.session is ctx.session

    def test_config_flows_into_components(self):
        config = AppConfig(
            dev_hosts=["devbox"],
            tenant_query_param="org",
            auth_collection="members",
            expiring_window_days=7,
        )
        ctx = build_app(config, client=FakeStore())
        assert ctx.resolver.dev_hosts == ("devbox",)
        assert ctx.resolver.override_param == "org"
        assert ctx.session.auth_collection == "members"
        assert ctx.queries.expiring_window_days == 7

    def test_storage_path_uses_file_storage(self, tmp_path):
        config = AppConfig(storage_path=str(tmp_path / "session.json"))
        ctx = build_app(config, client=FakeStore())
        assert isinstance(ctx.session.storage, JsonFileStorage)

    def test_auth_store_path_is_file_backed(self, tmp_path):
        config = AppConfig(auth_store_path=str(tmp_path / "auth.json"))
        ctx = build_app(config)
        assert ctx.client.auth_store.path == tmp_path / "auth.json"

    def test_explicit_auth_store_overrides_path(self, tmp_path):
        config = AppConfig(auth_store_path=str(tmp_path / "auth.json"))
        auth_store = AuthStore()
        ctx = build_app(config, auth_store=auth_store)
        assert ctx.client.auth_store is auth_store

    @pytest.mark.asyncio
    async def test_end_to_end_with_persisted_org(self, tmp_path):
        path = tmp_path / "session.json"
        store = FakeStore({"organizations": [ACME]})
        ctx = build_app(AppConfig(storage_path=str(path)), client=store)

        await ctx.session.initialize(RequestContext("acme.example.com"))
        assert json.loads(path.read_text())["auth-storage"]["organization"]["id"] == "org-acme"

        # A fresh process hydrates the organization before resolving again.
        restarted = build_app(AppConfig(storage_path=str(path)), client=store)
        assert restarted.session.organization.id == "org-acme"
        assert not restarted.session.state.is_initialized
