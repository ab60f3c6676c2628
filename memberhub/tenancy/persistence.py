"""
Persisted session slot.

Only the resolved organization survives a restart. It is stored under a
single named slot as a small versioned payload:

    {"version": 1, "organization": {...} | null}

The user and token are never written here; the session manager
re-derives them from the backend on every start.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, MutableMapping, Optional, Protocol

from pydantic import BaseModel, ValidationError

from memberhub.tenancy.models import Organization

logger = logging.getLogger(__name__)

STORAGE_NAME = "auth-storage"
SCHEMA_VERSION = 1


class PersistedSession(BaseModel):
    version: int = SCHEMA_VERSION
    organization: Optional[Organization] = None


class Storage(Protocol):
    """Named key/value slots holding JSON-compatible payloads."""

    def read(self, name: str) -> Optional[dict[str, Any]]: ...

    def write(self, name: str, payload: dict[str, Any]) -> None: ...

    def remove(self, name: str) -> None: ...


class MemoryStorage:
    """Storage over any mutable mapping (a dict, or a UI framework's session state)."""

    def __init__(self, backing: Optional[MutableMapping[str, Any]] = None):
        self._data = backing if backing is not None else {}

    def read(self, name: str) -> Optional[dict[str, Any]]:
        value = self._data.get(name)
        return dict(value) if isinstance(value, dict) else None

    def write(self, name: str, payload: dict[str, Any]) -> None:
        self._data[name] = dict(payload)

    def remove(self, name: str) -> None:
        self._data.pop(name, None)


class JsonFileStorage:
    """Storage backed by one JSON file holding every slot."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session storage {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, name: str) -> Optional[dict[str, Any]]:
        value = self._read_all().get(name)
        return value if isinstance(value, dict) else None

    def write(self, name: str, payload: dict[str, Any]) -> None:
        data = self._read_all()
        data[name] = payload
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

    def remove(self, name: str) -> None:
        data = self._read_all()
        if data.pop(name, None) is not None:
            self.path.write_text(json.dumps(data, indent=2))


def load_organization(
    storage: Storage, name: str = STORAGE_NAME
) -> Optional[Organization]:
    """
    Read the persisted organization.

    Payloads with another schema version, or that fail validation, are
    ignored rather than migrated.
    """
    raw = storage.read(name)
    if not raw:
        return None
    if raw.get("version") != SCHEMA_VERSION:
        logger.info(
            "persisted_session_version_mismatch",
            extra={"found": raw.get("version"), "expected": SCHEMA_VERSION},
        )
        return None
    try:
        return PersistedSession.model_validate(raw).organization
    except ValidationError as e:
        logger.warning(f"Ignoring invalid persisted session: {e}")
        return None


def save_organization(
    storage: Storage,
    organization: Optional[Organization],
    name: str = STORAGE_NAME,
) -> None:
    """Write the organization slot. The fallback organization is never persisted."""
    if organization is not None and organization.is_fallback:
        organization = None
    payload = PersistedSession(organization=organization)
    storage.write(name, payload.model_dump(mode="json"))
