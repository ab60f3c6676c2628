"""
Tests for the operator CLI in main.py, run against the FakeStore.
"""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

import main
from memberhub.bootstrap import build_app
from memberhub.config.schema import AppConfig
from memberhub.testing.fake_store import FakeStore

runner = CliRunner()

DATA = {
    "organizations": [
        {"id": "org-acme", "name": "Acme Club", "subdomain": "acme", "status": "active"},
    ],
    "users": [
        {"id": "usr-ada", "email": "ada@acme.org", "password": "ada-pw", "name": "Ada",
         "tenant_id": "org-acme", "role": "admin", "status": "active"},
        {"id": "usr-max", "email": "max@acme.org", "password": "max-pw", "name": "Max",
         "tenant_id": "org-acme", "role": "member", "status": "pending"},
    ],
}


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake = FakeStore(DATA)
    monkeypatch.setattr(main, "_build", lambda: build_app(AppConfig(), client=fake))
    return fake


class TestResolve:

    def test_known_host(self, store):
        result = runner.invoke(main.app, ["resolve", "acme.example.com"])
        assert result.exit_code == 0
        assert "Acme Club" in result.output

    def test_unknown_host(self, store):
        result = runner.invoke(main.app, ["resolve", "zeta.example.com"])
        assert result.exit_code == 1
        assert "No active organization" in result.output

    def test_local_fallback(self, monkeypatch):
        monkeypatch.setattr(main, "_build", lambda: build_app(AppConfig(), client=FakeStore()))
        result = runner.invoke(main.app, ["resolve", "localhost"])
        assert result.exit_code == 0
        assert "Development fallback organization" in result.output


class TestAdminCommands:

    def test_stats(self, store):
        result = runner.invoke(
            main.app,
            ["stats", "acme.example.com", "--email", "ada@acme.org", "--password", "ada-pw"],
        )
        assert result.exit_code == 0
        assert "Total Members" in result.output
        assert "Pending Members" in result.output

    def test_stats_denied_for_member(self, store):
        result = runner.invoke(
            main.app,
            ["stats", "acme.example.com", "--email", "max@acme.org", "--password", "max-pw"],
        )
        assert result.exit_code == 1
        assert "insufficient-role" in result.output

    def test_bad_credentials(self, store):
        result = runner.invoke(
            main.app,
            ["users", "acme.example.com", "--email", "ada@acme.org", "--password", "nope"],
        )
        assert result.exit_code == 1
        assert "Failed" in result.output

    def test_users_search(self, store):
        result = runner.invoke(
            main.app,
            ["users", "acme.example.com", "--email", "ada@acme.org",
             "--password", "ada-pw", "--search", "max"],
        )
        assert result.exit_code == 0
        assert "max@acme.org" in result.output
        assert "ada@acme.org" not in result.output
