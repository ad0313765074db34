from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Query

from pipe_registry.config import verify_created_functions
from pipe_registry.core.filters import Filter, Where, parse_filter, parse_where
from pipe_registry.core.ingest import IngestionSupervisor
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.db import open_database

_db: RegistryDatabase | None = None
_supervisor: IngestionSupervisor | None = None


async def get_database() -> AsyncIterator[RegistryDatabase]:
    """Yield the ``RegistryDatabase``, creating it lazily on first call."""
    global _db  # noqa: PLW0603
    if _db is None:
        _db = open_database()
    await _db.ensure_ready()
    yield _db


def get_supervisor() -> IngestionSupervisor:
    global _supervisor  # noqa: PLW0603
    if _supervisor is None:
        _supervisor = IngestionSupervisor(verify=verify_created_functions())
    return _supervisor


async def shutdown_database() -> None:
    global _db, _supervisor  # noqa: PLW0603
    if _supervisor is not None:
        await _supervisor.wait_idle()
        _supervisor = None
    if _db is not None:
        await _db.dispose()
        _db = None


def filter_query(
    raw_filter: str | None = Query(None, alias="filter", description="LoopBack filter object as JSON."),
) -> Filter:
    return parse_filter(raw_filter)


def where_query(
    raw_where: str | None = Query(None, alias="where", description="LoopBack where object as JSON."),
) -> Where | None:
    return parse_where(raw_where)
