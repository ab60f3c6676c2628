"""
Dashboard Authentication — session bootstrap and view gating.

Each browser session gets its own AppContext (store client, resolver,
session manager, queries) kept in Streamlit's session_state, plus its
own event loop so the async store client is always driven from the
same loop across reruns.

Security model:
- The tenant is resolved from the request Host header (and ?tenant= on
  local hosts) on the first render of a browser session
- Views call require_access() which consults the RouteGuard
- Failed sign-ins are logged; 5 failures trigger a 30-second cooldown

Usage:
    # At the top of any protected page:
    from dashboard.auth import require_access
    session = require_access(required_role="admin")
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Coroutine, Iterable, Optional, TypeVar

from memberhub.bootstrap import AppContext, build_app
from memberhub.config.loader import load_config
from memberhub.integrations.pocketbase_client import AuthStore
from memberhub.tenancy.guard import AUTHENTICATION_REQUIRED, RouteGuard
from memberhub.tenancy.persistence import MemoryStorage
from memberhub.tenancy.resolver import RequestContext
from memberhub.tenancy.session import SessionManager

logger = logging.getLogger(__name__)

# Rate limiting constants
MAX_FAILED_ATTEMPTS = 5
COOLDOWN_SECONDS = 30

APP_KEY = "memberhub_app"
LOOP_KEY = "memberhub_loop"

T = TypeVar("T")


def request_context_from(headers: Any, query: Any) -> RequestContext:
    """Build the resolver's request context from Streamlit's headers and query params."""
    host = None
    if headers is not None:
        host = headers.get("X-Forwarded-Host") or headers.get("Host")
    params = {k: query.get(k) for k in query.keys()} if query is not None else {}
    return RequestContext(hostname=host, query=params)


def run_async(st, coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on this browser session's event loop."""
    loop = st.session_state.get(LOOP_KEY)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        st.session_state[LOOP_KEY] = loop
    return loop.run_until_complete(coro)


def get_app(st) -> AppContext:
    """The AppContext for this browser session, built on first use."""
    ctx = st.session_state.get(APP_KEY)
    if ctx is None:
        # Browser sessions never share the token file the CLI may use.
        ctx = build_app(
            load_config(),
            storage=MemoryStorage(st.session_state),
            auth_store=AuthStore(),
        )
        st.session_state[APP_KEY] = ctx
    return ctx


def ensure_initialized(st) -> SessionManager:
    """Initialize the session once per browser session and return it."""
    session = get_app(st).session
    if not session.state.is_initialized:
        request = request_context_from(st.context.headers, st.query_params)
        run_async(st, session.initialize(request))
    return session


def _is_rate_limited(st) -> bool:
    """Check if login attempts are rate-limited."""
    failed_count = st.session_state.get("auth_failed_count", 0)
    last_failed = st.session_state.get("auth_last_failed_at", 0)

    if failed_count >= MAX_FAILED_ATTEMPTS:
        elapsed = time.time() - last_failed
        if elapsed < COOLDOWN_SECONDS:
            return True
        # Cooldown expired, reset counter
        st.session_state["auth_failed_count"] = 0
    return False


def _record_failed_attempt(st) -> None:
    """Record a failed login attempt."""
    st.session_state["auth_failed_count"] = (
        st.session_state.get("auth_failed_count", 0) + 1
    )
    st.session_state["auth_last_failed_at"] = time.time()

    logger.warning(
        "dashboard_auth_failed",
        extra={
            "attempt_count": st.session_state["auth_failed_count"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def _reset_failed_attempts(st) -> None:
    st.session_state["auth_failed_count"] = 0


def cooldown_remaining(st) -> int:
    """Seconds left before another sign-in attempt is allowed."""
    remaining = COOLDOWN_SECONDS - (
        time.time() - st.session_state.get("auth_last_failed_at", 0)
    )
    return max(int(remaining), 0)


def require_access(
    require_auth: bool = True,
    required_role: Optional[str] = None,
    allowed_roles: Optional[Iterable[str]] = None,
) -> SessionManager:
    """
    Gate the current page.

    Renders a loading, sign-in or access-denied notice and calls
    st.stop() unless the RouteGuard allows the view.
    """
    import streamlit as st

    session = ensure_initialized(st)
    decision = RouteGuard.check(
        session.state,
        require_auth=require_auth,
        required_role=required_role,
        allowed_roles=allowed_roles,
    )

    if decision.is_pending:
        st.info("Loading...")
        st.stop()
    elif decision.denied and decision.reason == AUTHENTICATION_REQUIRED:
        st.markdown("## Authentication Required")
        st.markdown("Please sign in to access this page.")
        st.page_link("pages/1_Sign_In.py", label="Sign in")
        st.stop()
    elif decision.denied:
        st.markdown("## Access Denied")
        st.markdown("You don't have permission to access this page.")
        logger.info(
            "dashboard_access_denied",
            extra={
                "user_id": session.user.id if session.user else None,
                "required_role": required_role,
            },
        )
        st.stop()

    return session
