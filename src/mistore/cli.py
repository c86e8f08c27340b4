"""Typer CLI for Mi Store."""

import asyncio
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(name="mistore", help="Mi Store: app storefront backend")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (defaults to MISTORE_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (defaults to MISTORE_PORT)"),
):
    """Start the Mi Store API server."""
    import uvicorn
    from mistore.app import create_app
    from mistore.common.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting Mi Store on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _init_db() -> None:
    from mistore.deps import get_db

    db = get_db()
    await db.init()
    try:
        await db.create_all()
    finally:
        await db.close()


@app.command("init-db")
def init_db():
    """Create all tables (development; use alembic in production)."""
    asyncio.run(_init_db())
    console.print("[bold green]Database ready[/bold green]")


async def _create_admin(username: str, password: str) -> bool:
    from mistore.deps import get_account_service, get_db

    db = get_db()
    await db.init()
    try:
        await db.create_all()
        async with db.get_session() as session:
            _, created = await get_account_service().ensure_admin(session, username, password)
    finally:
        await db.close()
    return created


@app.command("create-admin")
def create_admin(
    username: Optional[str] = typer.Option(None, help="Admin username (defaults to MISTORE_ADMIN_USERNAME)"),
    password: Optional[str] = typer.Option(None, help="Admin password (defaults to MISTORE_ADMIN_PASSWORD)"),
):
    """Create the administrator account. Safe to run repeatedly."""
    from mistore.common.config import get_settings
    from mistore.common.exceptions import ValidationError

    settings = get_settings()
    username = username or settings.admin_username
    password = password or settings.admin_password
    try:
        created = asyncio.run(_create_admin(username, password))
    except ValidationError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(1)

    if created:
        console.print(f"[bold green]Admin created[/bold green] — {username}")
    else:
        console.print(f"[yellow]Admin already exists[/yellow] — {username}")


@app.command()
def health(
    url: str = typer.Option("http://localhost:3000", help="Server URL"),
):
    """Check Mi Store server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
