"""
Pydantic configuration schema for MemberHub.

One AppConfig per deployment. Values come from an optional config.yaml
and are overridden by environment variables (see loader.py).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class AppConfig(BaseModel):
    """Runtime configuration for the store client, resolver and session."""

    backend_url: str = Field(
        "http://127.0.0.1:8090",
        description="Base URL of the PocketBase-compatible backend",
    )
    request_timeout: float = Field(
        30.0, description="Transport timeout for store requests, in seconds"
    )
    tenant_header: str = Field(
        "X-Tenant-ID", description="Header carrying the tenant tag on store calls"
    )
    tenant_query_param: str = Field(
        "tenant", description="Override query parameter honoured on local hosts"
    )
    dev_hosts: list[str] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1", "::1"],
        description="Hostnames treated as local development",
    )
    auth_collection: str = "users"
    storage_path: Optional[str] = Field(
        None,
        description="JSON file backing the persisted session slot; memory-only if unset",
    )
    auth_store_path: Optional[str] = Field(
        None,
        description="JSON file backing the store client's auth token; memory-only if unset",
    )
    expiring_window_days: int = Field(
        30, description="Memberships ending within this many days count as expiring"
    )
    environment: Environment = Environment.DEVELOPMENT

    @field_validator("backend_url")
    @classmethod
    def validate_backend_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("backend_url must start with http:// or https://")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("dev_hosts")
    @classmethod
    def normalize_dev_hosts(cls, v: list[str]) -> list[str]:
        return [host.strip().lower() for host in v if host.strip()]

    @field_validator("expiring_window_days")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v < 0:
            raise ValueError("expiring_window_days cannot be negative")
        return v
