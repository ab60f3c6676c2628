"""
MemberHub - Main Entry Point

CLI for operators: inspect configuration, check which organization a
host resolves to, and pull tenant dashboards from the terminal.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from memberhub.bootstrap import AppContext, build_app
from memberhub.config.loader import load_config
from memberhub.exceptions import ConfigurationError, MemberHubError
from memberhub.observability.logging_config import configure_logging
from memberhub.tenancy.guard import RouteGuard
from memberhub.tenancy.models import Role
from memberhub.tenancy.resolver import RequestContext

load_dotenv(Path(__file__).parent / ".env", override=True)

app = typer.Typer(
    name="memberhub",
    help="MemberHub - multi-tenant membership management",
)
console = Console()
logger = logging.getLogger("memberhub")


def _build() -> AppContext:
    """Load config and wire the app, with a friendly error on failure."""
    configure_logging(level=logging.WARNING)
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(Panel(
            f"[red]{e}[/]",
            title="⚠ Configuration Error",
            border_style="red",
        ))
        raise typer.Exit(code=1)
    return build_app(config)


def _request(host: str, tenant: Optional[str]) -> RequestContext:
    query = {"tenant": tenant} if tenant else {}
    return RequestContext(hostname=host, query=query)


async def _admin_session(
    ctx: AppContext, host: str, tenant: Optional[str], email: str, password: str
) -> None:
    """Initialize for `host`, sign in, and require the admin capability."""
    await ctx.session.initialize(_request(host, tenant))
    if ctx.session.organization is None:
        console.print(f"[red]No active organization for host[/] [bold]{host}[/]")
        raise typer.Exit(code=1)

    await ctx.session.login(email, password)
    decision = RouteGuard.check(ctx.session.state, required_role=Role.ADMIN)
    if not decision.allowed:
        console.print(f"[red]Access denied:[/] {decision.reason}")
        raise typer.Exit(code=1)


# =========================================================================
# Commands
# =========================================================================


@app.command()
def info():
    """Show the effective configuration and backend health."""
    ctx = _build()
    config = ctx.config

    table = Table(title="MemberHub - Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Backend URL", config.backend_url)
    table.add_row("Environment", config.environment.value)
    table.add_row("Tenant header", config.tenant_header)
    table.add_row("Override parameter", config.tenant_query_param)
    table.add_row("Dev hosts", ", ".join(config.dev_hosts))
    table.add_row("Session storage", config.storage_path or "memory")
    console.print(table)

    async def _health() -> None:
        try:
            result = await ctx.client.health()
            console.print(f"[green]Backend healthy:[/] {result.get('message', 'ok')}")
        except MemberHubError as e:
            console.print(f"[red]Backend unreachable:[/] {e}")
        finally:
            await ctx.aclose()

    asyncio.run(_health())


@app.command()
def resolve(
    host: str = typer.Argument(..., help="Hostname, e.g. acme.example.com"),
    tenant: Optional[str] = typer.Option(
        None, help="Tenant override (honoured on local hosts only)"
    ),
):
    """Show which organization a host resolves to."""
    ctx = _build()

    async def _resolve():
        try:
            return await ctx.resolver.resolve(_request(host, tenant))
        finally:
            await ctx.aclose()

    org = asyncio.run(_resolve())
    if org is None:
        console.print(f"[yellow]No active organization for[/] [bold]{host}[/]")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"ID: {org.id}\n"
        f"Name: {org.name}\n"
        f"Subdomain: {org.subdomain}\n"
        f"Status: {org.status.value}"
        + ("\n\n[yellow]Development fallback organization[/]" if org.is_fallback else ""),
        title=f"Tenant: {host}",
    ))


@app.command()
def stats(
    host: str = typer.Argument(..., help="Tenant hostname"),
    email: str = typer.Option(..., prompt=True, help="Admin email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    tenant: Optional[str] = typer.Option(None, help="Tenant override on local hosts"),
):
    """Show member and membership counters for a tenant."""
    ctx = _build()

    async def _stats():
        try:
            await _admin_session(ctx, host, tenant, email, password)
            return await ctx.queries.get_dashboard_stats()
        finally:
            await ctx.aclose()

    try:
        result = asyncio.run(_stats())
    except MemberHubError as e:
        console.print(f"[red]Failed:[/] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Dashboard - {host}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Total Members", str(result.total_members))
    table.add_row("Active Members", str(result.active_members))
    table.add_row("Pending Members", str(result.pending_members))
    table.add_row("Active Memberships", str(result.active_memberships))
    table.add_row("Expiring (30 days)", str(result.expiring_memberships))
    console.print(table)


@app.command()
def users(
    host: str = typer.Argument(..., help="Tenant hostname"),
    email: str = typer.Option(..., prompt=True, help="Admin email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    search: str = typer.Option("", help="Filter by name or email"),
    page: int = typer.Option(1, help="Page number"),
    tenant: Optional[str] = typer.Option(None, help="Tenant override on local hosts"),
):
    """List the members of a tenant."""
    ctx = _build()

    async def _users():
        try:
            await _admin_session(ctx, host, tenant, email, password)
            return await ctx.queries.list_users(page=page, search=search)
        finally:
            await ctx.aclose()

    try:
        result = asyncio.run(_users())
    except MemberHubError as e:
        console.print(f"[red]Failed:[/] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Members - page {result.page}/{max(result.total_pages, 1)}")
    table.add_column("Name", style="white")
    table.add_column("Email", style="cyan")
    table.add_column("Role", style="green")
    table.add_column("Status", style="yellow")
    for user in result.items:
        table.add_row(user.name, user.email, user.role.value, user.status.value)
    console.print(table)
    console.print(f"[dim]{result.total_items} members total[/]")


@app.command()
def dashboard(
    port: int = typer.Option(8501, help="Port for the Streamlit server"),
):
    """Launch the Streamlit dashboard."""
    app_path = Path(__file__).parent / "dashboard" / "app.py"
    console.print(f"[cyan]Starting dashboard on port {port}...[/]")
    raise typer.Exit(code=subprocess.call([
        sys.executable, "-m", "streamlit", "run", str(app_path),
        "--server.port", str(port),
    ]))


if __name__ == "__main__":
    app()
