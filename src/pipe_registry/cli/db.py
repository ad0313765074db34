"""Schema migration commands."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from pipe_registry.db.engine import database_url
from pipe_registry.db.migrations import revert_migrations, run_migrations

db_app = typer.Typer(help="Manage the database schema.")
console = Console()


@db_app.command("upgrade")
def upgrade(
    revision: Annotated[str, typer.Argument(help="Target revision.")] = "head",
    url: Annotated[str | None, typer.Option(help="Database URL (default from DATABASE_URL).")] = None,
) -> None:
    """Apply migrations up to REVISION."""
    console.print(f"Upgrading schema to [bold]{revision}[/bold]...")
    run_migrations(url or database_url(), revision)
    console.print("[green]Schema upgraded.[/green]")


@db_app.command("downgrade")
def downgrade(
    revision: Annotated[str, typer.Argument(help="Target revision.")] = "base",
    url: Annotated[str | None, typer.Option(help="Database URL (default from DATABASE_URL).")] = None,
) -> None:
    """Revert migrations down to REVISION."""
    console.print(f"Downgrading schema to [bold]{revision}[/bold]...")
    revert_migrations(url or database_url(), revision)
    console.print("[green]Schema downgraded.[/green]")
