import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from pipe_registry.config import verify_created_functions
from pipe_registry.core.containers import ingest_container
from pipe_registry.core.errors import IngestionError, RecordValidationError
from pipe_registry.db import open_database

console = Console()


def ingest(
    path: Annotated[Path, typer.Argument(help="JSON file holding one pipe container.", exists=True, dir_okay=False)],
    verify: Annotated[
        bool | None, typer.Option("--verify/--no-verify", help="Read back each derived function after creating it.")
    ] = None,
) -> None:
    """Store a container and derive its functions, waiting for the result."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]{path} is not valid JSON:[/red] {exc.msg}")
        raise typer.Exit(1) from exc

    database = open_database()
    check = verify_created_functions() if verify is None else verify

    async def _run() -> None:
        try:
            await database.ensure_ready()
            container, functions = await ingest_container(database, data, verify=check)
            console.print(f"[green]Stored[/green] container {container.name!r} with id {container.id}")
            console.print(f"[green]Derived[/green] {len(functions)} functions")
        finally:
            await database.dispose()

    try:
        asyncio.run(_run())
    except RecordValidationError as exc:
        console.print(f"[red]Invalid container:[/red] {exc}")
        raise typer.Exit(1) from exc
    except IngestionError as exc:
        console.print(f"[red]Ingestion failed, container rolled back:[/red] {exc}")
        raise typer.Exit(1) from exc
