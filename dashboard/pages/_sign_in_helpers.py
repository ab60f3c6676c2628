"""
Extracted helpers for the Sign In page.

Separated from the Streamlit page so they can be unit-tested
without importing streamlit (which requires a running server).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from memberhub.exceptions import (
    AuthorizationError,
    MemberHubError,
    PreconditionError,
    StoreRequestError,
    TransportError,
)
from memberhub.tenancy.models import Registration

FIELD_LABELS = {
    "email": "Email",
    "password": "Password",
    "password_confirm": "Confirm password",
    "name": "Full name",
    "phone": "Phone",
}


def validate_login_form(email: str, password: str) -> list[str]:
    """Problems with the sign-in form, empty when it can be submitted."""
    errors = []
    if not (email or "").strip():
        errors.append("Email is required.")
    if not password:
        errors.append("Password is required.")
    return errors


def registration_errors(error: ValidationError) -> list[str]:
    """Readable messages for a Registration validation failure."""
    messages = []
    for item in error.errors():
        loc = item.get("loc") or ()
        field = FIELD_LABELS.get(str(loc[0]), str(loc[0])) if loc else ""
        message = str(item.get("msg", "Invalid value"))
        message = message.removeprefix("Value error, ")
        messages.append(f"{field}: {message}" if field else message)
    return messages


def build_registration(form: dict[str, Any]) -> tuple[Optional[Registration], list[str]]:
    """Validate a registration form. Returns (registration, []) or (None, errors)."""
    cleaned = {k: v for k, v in form.items() if v not in ("", None)}
    try:
        return Registration.model_validate(cleaned), []
    except ValidationError as e:
        return None, registration_errors(e)


def login_error_message(error: MemberHubError) -> str:
    """What to tell the member when sign-in fails."""
    if isinstance(error, AuthorizationError):
        return "This account belongs to a different organization."
    if isinstance(error, PreconditionError):
        return "This portal is not set up yet. No organization is available."
    if isinstance(error, TransportError):
        return "The membership service is unreachable. Please try again shortly."
    if isinstance(error, StoreRequestError):
        return "Invalid email or password."
    return "Sign-in failed. Please try again."


def registration_error_message(error: MemberHubError) -> str:
    """What to tell the member when registration is rejected by the backend."""
    if isinstance(error, TransportError):
        return "The membership service is unreachable. Please try again shortly."
    if isinstance(error, StoreRequestError):
        fields = (error.details or {}).get("data") or {}
        if "email" in fields:
            return "An account with this email already exists."
        if "passwordConfirm" in fields:
            return "Passwords do not match."
        return "Registration was rejected. Please check your details."
    return "Registration failed. Please try again."
