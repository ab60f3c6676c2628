"""
Tests for dashboard/auth.py — session bootstrap and sign-in rate limiting.

Uses a plain namespace in place of the streamlit module, so no running
server is needed.
"""

from __future__ import annotations

import time
from types import SimpleNamespace

import pytest

from dashboard.auth import (
    APP_KEY,
    COOLDOWN_SECONDS,
    LOOP_KEY,
    MAX_FAILED_ATTEMPTS,
    _is_rate_limited,
    _record_failed_attempt,
    _reset_failed_attempts,
    cooldown_remaining,
    ensure_initialized,
    get_app,
    request_context_from,
    run_async,
)
from memberhub.bootstrap import build_app
from memberhub.config.schema import AppConfig
from memberhub.tenancy.persistence import STORAGE_NAME, MemoryStorage
from memberhub.integrations.pocketbase_client import AuthStore
from memberhub.testing.fake_store import FakeStore, make_token

ACME = {"id": "org-acme", "name": "Acme Club", "subdomain": "acme", "status": "active"}
BETA = {"id": "org-beta", "name": "Beta Society", "subdomain": "beta", "status": "active"}


def _fake_st(host: str = "localhost", query: dict | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        session_state={},
        context=SimpleNamespace(headers={"Host": host}),
        query_params=dict(query or {}),
    )


@pytest.fixture
def st():
    fake = _fake_st()
    yield fake
    loop = fake.session_state.get(LOOP_KEY)
    if loop is not None:
        loop.close()


def _install_app(st, store: FakeStore) -> None:
    st.session_state[APP_KEY] = build_app(
        AppConfig(), client=store, storage=MemoryStorage(st.session_state)
    )


# ── Request context ──────────────────────────────────────────


class TestRequestContext:

    def test_host_header(self):
        ctx = request_context_from({"Host": "acme.example.com:443"}, {})
        assert ctx.host == "acme.example.com"

    def test_forwarded_host_preferred(self):
        ctx = request_context_from(
            {"Host": "internal:8501", "X-Forwarded-Host": "beta.example.com"}, {}
        )
        assert ctx.subdomain == "beta"

    def test_query_params_copied(self):
        ctx = request_context_from({"Host": "localhost"}, {"tenant": "acme"})
        assert ctx.query == {"tenant": "acme"}

    def test_no_headers(self):
        assert request_context_from(None, None).host == ""


# ── Session bootstrap ────────────────────────────────────────


class TestBootstrap:

    def test_run_async_reuses_loop(self, st):
        async def _value():
            return 42

        assert run_async(st, _value()) == 42
        loop = st.session_state[LOOP_KEY]
        assert run_async(st, _value()) == 42
        assert st.session_state[LOOP_KEY] is loop

    def test_get_app_built_once(self, st, monkeypatch):
        monkeypatch.setattr("dashboard.auth.load_config", lambda: AppConfig())
        first = get_app(st)
        assert get_app(st) is first
        assert st.session_state[APP_KEY] is first

    def test_get_app_ignores_shared_token_file(self, st, monkeypatch, tmp_path):
        token_file = tmp_path / "auth.json"
        AuthStore(token_file).save(make_token("usr-alice"), {"id": "usr-alice"})
        monkeypatch.setattr(
            "dashboard.auth.load_config",
            lambda: AppConfig(auth_store_path=str(token_file)),
        )

        auth_store = get_app(st).client.auth_store
        assert auth_store.path is None
        assert auth_store.token == ""
        assert token_file.exists()

    def test_ensure_initialized_resolves_from_headers(self):
        st = _fake_st("localhost:8501", {"tenant": "beta"})
        _install_app(st, FakeStore({"organizations": [ACME, BETA]}))
        try:
            session = ensure_initialized(st)
            assert session.state.is_initialized
            assert session.organization.id == "org-beta"
            assert st.session_state[STORAGE_NAME]["organization"]["id"] == "org-beta"
        finally:
            st.session_state[LOOP_KEY].close()

    def test_ensure_initialized_runs_once(self, st):
        store = FakeStore({"organizations": [ACME]})
        _install_app(st, store)
        ensure_initialized(st)
        calls = len(store.calls)
        ensure_initialized(st)
        assert len(store.calls) == calls


# ── Rate limiting ────────────────────────────────────────────


class TestRateLimiting:

    def test_not_limited_initially(self, st):
        assert _is_rate_limited(st) is False

    def test_limited_after_max_failures(self, st):
        for _ in range(MAX_FAILED_ATTEMPTS):
            _record_failed_attempt(st)
        assert _is_rate_limited(st) is True
        assert 0 < cooldown_remaining(st) <= COOLDOWN_SECONDS

    def test_below_max_not_limited(self, st):
        for _ in range(MAX_FAILED_ATTEMPTS - 1):
            _record_failed_attempt(st)
        assert _is_rate_limited(st) is False

    def test_cooldown_expiry_resets(self, st):
        for _ in range(MAX_FAILED_ATTEMPTS):
            _record_failed_attempt(st)
        st.session_state["auth_last_failed_at"] = time.time() - COOLDOWN_SECONDS - 1
        assert _is_rate_limited(st) is False
        assert st.session_state["auth_failed_count"] == 0
        assert cooldown_remaining(st) == 0

    def test_reset(self, st):
        for _ in range(MAX_FAILED_ATTEMPTS):
            _record_failed_attempt(st)
        _reset_failed_attempts(st)
        assert _is_rate_limited(st) is False
