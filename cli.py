"""
NeoCord CLI.

Command-line interface for common operator tasks: database setup, account
creation and service checks.
"""

import asyncio
import sys
import time

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="neocord",
    help="NeoCord chat server CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create tables and seed the default rooms."""
    from rest_api.seed import prepare_database
    from shared.infrastructure.db import engine

    console.print(f"[blue]Initializing database: {engine.url.render_as_string(hide_password=True)}[/blue]")
    created = prepare_database()

    console.print(f"[green]✓ Tables ready, {created} room(s) created[/green]")


@app.command()
def create_user(
    username: str = typer.Argument(..., help="Account name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
):
    """Register an account without going through the REST API."""
    from pydantic import ValidationError
    from sqlalchemy.exc import IntegrityError

    from rest_api.repositories import get_user_repository
    from shared.infrastructure.db import get_db_context, safe_commit
    from shared.security.password import hash_password
    from shared.utils.avatars import generate_avatar_url
    from shared.utils.schemas import RegisterRequest

    try:
        body = RegisterRequest(username=username, password=password)
    except ValidationError as e:
        console.print(f"[red]✗ Invalid account: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(1)

    with get_db_context() as db:
        repo = get_user_repository(db)
        try:
            user = repo.create(
                username=body.username,
                password_hash=hash_password(body.password),
                avatar=generate_avatar_url(body.username),
            )
            safe_commit(db)
        except IntegrityError:
            console.print(f"[red]✗ User '{body.username}' already exists[/red]")
            raise typer.Exit(1)

    console.print(f"[green]✓ Created user {user.username} (id {user.id})[/green]")


@app.command()
def rooms():
    """List rooms."""
    from rest_api.repositories import get_room_repository
    from shared.infrastructure.db import get_db_context

    with get_db_context() as db:
        all_rooms = get_room_repository(db).find_all()

        table = Table(title="Rooms")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="yellow")
        table.add_column("Description")

        for room in all_rooms:
            table.add_row(str(room.id), room.name, room.type, room.description or "")

    console.print(table)


@app.command()
def reset_statuses():
    """Mark every account offline (after an unclean gateway stop)."""
    from rest_api.repositories import get_user_repository
    from shared.infrastructure.db import get_db_context, safe_commit

    with get_db_context() as db:
        changed = get_user_repository(db).reset_all_statuses()
        safe_commit(db)

    console.print(f"[green]✓ {changed} account(s) reset to offline[/green]")


# =============================================================================
# Service Commands
# =============================================================================

@app.command()
def ws_test(
    url: str = typer.Option("ws://localhost:3001/ws/chat", help="WebSocket URL"),
    origin: str = typer.Option("http://localhost:5173", help="Origin header to send"),
):
    """Test WebSocket connectivity with a heartbeat."""
    import websockets

    async def _test():
        console.print(f"[blue]Testing WebSocket: {url}[/blue]")

        try:
            async with websockets.connect(url, origin=origin, close_timeout=5) as ws:
                await ws.send('{"type":"ping"}')
                response = await asyncio.wait_for(ws.recv(), timeout=5)
                console.print(f"[green]✓ Connected! Response: {response}[/green]")
        except asyncio.TimeoutError:
            console.print("[red]✗ Connection timed out[/red]")
            raise typer.Exit(1)
        except (OSError, websockets.WebSocketException) as e:
            console.print(f"[red]✗ Connection failed: {e}[/red]")
            raise typer.Exit(1)

    asyncio.run(_test())


@app.command()
def health(
    rest_url: str = typer.Option("http://localhost:3000/api/health/detailed", help="REST API health URL"),
    ws_url: str = typer.Option("http://localhost:3001/ws/health/detailed", help="Gateway health URL"),
):
    """Check service health."""
    import httpx

    async def _health():
        services = [
            ("REST API", rest_url),
            ("WS Gateway", ws_url),
        ]

        table = Table(title="Service Health")
        table.add_column("Service", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Response Time", style="yellow")

        async with httpx.AsyncClient(timeout=5.0) as client:
            for name, url in services:
                start = time.time()
                try:
                    response = await client.get(url)
                except httpx.HTTPError as e:
                    table.add_row(name, f"✗ {type(e).__name__}", "-")
                    continue
                elapsed = (time.time() - start) * 1000

                if response.status_code == 200:
                    table.add_row(name, "✓ Healthy", f"{elapsed:.0f}ms")
                else:
                    table.add_row(name, f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")

        console.print(table)

    asyncio.run(_health())


@app.command()
def version():
    """Show version information."""
    from rest_api.main import app as rest_app
    from ws_gateway.main import app as gateway_app

    table = Table(title="NeoCord Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("REST API", rest_app.version)
    table.add_row("WS Gateway", gateway_app.version)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
