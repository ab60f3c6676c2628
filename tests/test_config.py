"""
Tests for memberhub/config (schema + loader).
"""

from __future__ import annotations

import pytest

from memberhub.config.loader import clear_cache, find_config_file, load_config
from memberhub.config.schema import AppConfig, Environment
from memberhub.exceptions import ConfigurationError

ENV_VARS = [
    "MEMBERHUB_CONFIG",
    "POCKETBASE_URL",
    "MEMBERHUB_BACKEND_URL",
    "MEMBERHUB_REQUEST_TIMEOUT",
    "MEMBERHUB_TENANT_HEADER",
    "MEMBERHUB_TENANT_QUERY_PARAM",
    "MEMBERHUB_STORAGE_PATH",
    "MEMBERHUB_AUTH_STORE_PATH",
    "MEMBERHUB_EXPIRING_WINDOW_DAYS",
    "MEMBERHUB_ENV",
    "MEMBERHUB_DEV_HOSTS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_cache()
    yield
    clear_cache()


# ── Schema ───────────────────────────────────────────────────


class TestAppConfig:

    def test_defaults(self):
        config = AppConfig()
        assert config.backend_url == "http://127.0.0.1:8090"
        assert config.tenant_header == "X-Tenant-ID"
        assert config.tenant_query_param == "tenant"
        assert "localhost" in config.dev_hosts
        assert config.expiring_window_days == 30
        assert config.environment == Environment.DEVELOPMENT

    def test_backend_url_trailing_slash_stripped(self):
        assert AppConfig(backend_url="https://pb.example.com/").backend_url == "https://pb.example.com"

    def test_backend_url_must_be_http(self):
        with pytest.raises(ValueError):
            AppConfig(backend_url="ftp://pb.example.com")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            AppConfig(request_timeout=0)

    def test_dev_hosts_normalized(self):
        assert AppConfig(dev_hosts=[" DevBox ", ""]).dev_hosts == ["devbox"]

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            AppConfig(expiring_window_days=-1)


# ── Loader ───────────────────────────────────────────────────


class TestLoadConfig:

    def test_no_file_gives_defaults(self):
        assert find_config_file() is None
        assert load_config().backend_url == "http://127.0.0.1:8090"

    def test_reads_cwd_config_yaml(self, tmp_path):
        (tmp_path / "config.yaml").write_text("backend_url: https://pb.acme.org\n")
        assert load_config().backend_url == "https://pb.acme.org"

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("expiring_window_days: 14\n")
        assert load_config(path).expiring_window_days == 14

    def test_config_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere.yaml"
        path.write_text("tenant_header: X-Org\n")
        monkeypatch.setenv("MEMBERHUB_CONFIG", str(path))
        assert load_config().tenant_header == "X-Org"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text("backend_url: https://file.example.com\n")
        monkeypatch.setenv("POCKETBASE_URL", "https://env.example.com")
        monkeypatch.setenv("MEMBERHUB_ENV", "production")
        config = load_config()
        assert config.backend_url == "https://env.example.com"
        assert config.environment == Environment.PRODUCTION

    def test_dev_hosts_env_list(self, monkeypatch):
        monkeypatch.setenv("MEMBERHUB_DEV_HOSTS", "localhost, devbox ,")
        assert load_config().dev_hosts == ["localhost", "devbox"]

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc:
            load_config(tmp_path / "nope.yaml")
        assert exc.value.config_path.endswith("nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(path)

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("backend_url: not-a-url\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("MEMBERHUB_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_cached_between_calls(self, monkeypatch):
        first = load_config()
        monkeypatch.setenv("POCKETBASE_URL", "https://changed.example.com")
        assert load_config() is first
        assert load_config(use_cache=False).backend_url == "https://changed.example.com"
