import asyncio
from collections.abc import Sequence
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from pipe_registry.core.filters import Filter
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.db import open_database

query_app = typer.Typer(help="List stored containers and functions.")
console = Console()


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _get_database() -> RegistryDatabase:
    return open_database()


@query_app.command("containers")
def containers(
    tag: Annotated[str | None, typer.Option(help="Only containers carrying this tag.")] = None,
    limit: Annotated[int, typer.Option(help="Max rows to return.")] = 50,
) -> None:
    """List stored containers."""
    db = _get_database()
    flt = Filter(where={"tags": tag} if tag else None, limit=limit)

    async def _run() -> None:
        try:
            await db.ensure_ready()
            rows = await db.containers.find(flt)
            _render_table(
                ["id", "name", "kind", "tags", "uri"],
                [
                    (c.id, c.name, c.container.kind if c.container else None, ",".join(c.tags), c.uri)
                    for c in rows
                ],
            )
        finally:
            await db.dispose()

    asyncio.run(_run())


@query_app.command("functions")
def functions(
    container_id: Annotated[str, typer.Argument(help="Id of the owning container.")],
    limit: Annotated[int, typer.Option(help="Max rows to return.")] = 50,
) -> None:
    """List the functions derived from one container, in ABI order."""
    db = _get_database()

    async def _run() -> None:
        try:
            await db.ensure_ready()
            rows = await db.children(container_id).find(Filter(limit=limit))
            _render_table(
                ["id", "signature", "devdoc", "userdoc"],
                [(f.id, f.signature, f.devdoc, f.userdoc) for f in rows],
            )
        finally:
            await db.dispose()

    asyncio.run(_run())
