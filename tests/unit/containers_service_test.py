"""Unit tests for the container services used by the API and the CLI."""

from typing import Any

import pytest

from pipe_registry.core.containers import (
    container_script,
    create_container_with_functions,
    delete_container_and_functions,
    derive_stored_container,
    ingest_container,
    parse_container,
)
from pipe_registry.core.errors import IngestionError, NotFoundError, RecordValidationError
from pipe_registry.core.ingest import IngestionSupervisor
from pipe_registry.db import InMemoryRegistryDatabase
from pipe_registry.models import PipeContainer, PipeFunction


class _FailingCreates(InMemoryRegistryDatabase):
    """Function creation fails after ``allowed`` successful inserts."""

    def __init__(self, allowed: int) -> None:
        super().__init__()
        original = self.functions.create
        calls = 0

        async def _create(record: PipeFunction) -> PipeFunction:
            nonlocal calls
            calls += 1
            if calls > allowed:
                raise RuntimeError("insert failed")
            return await original(record)

        self.functions.create = _create  # type: ignore[method-assign]


def test_parse_container_reports_missing_fields() -> None:
    with pytest.raises(RecordValidationError, match="name, tags") as exc_info:
        parse_container({"uri": "ipfs://x"})

    assert len(exc_info.value.errors) == 2


@pytest.mark.asyncio
async def test_create_with_functions_returns_before_derivation(
    in_memory_db: InMemoryRegistryDatabase, token_document: dict[str, Any]
) -> None:
    supervisor = IngestionSupervisor()

    created = await create_container_with_functions(in_memory_db, supervisor, parse_container(token_document))

    assert created.id is not None
    assert supervisor.pending == 1
    await supervisor.wait_idle()
    assert await in_memory_db.children(created.id).count() == 3


@pytest.mark.asyncio
async def test_create_with_functions_rolls_back_on_failure(token_document: dict[str, Any]) -> None:
    db = _FailingCreates(allowed=1)
    supervisor = IngestionSupervisor()

    created = await create_container_with_functions(db, supervisor, parse_container(token_document))
    (outcome,) = await supervisor.wait_idle()

    assert isinstance(outcome.error, RuntimeError)
    assert await db.functions.count() == 0
    with pytest.raises(NotFoundError):
        await db.containers.find_by_id(created.id or "")


@pytest.mark.asyncio
async def test_derive_stored_container(in_memory_db: InMemoryRegistryDatabase, token_document: dict[str, Any]) -> None:
    stored = await in_memory_db.containers.create(parse_container(token_document))

    functions = await derive_stored_container(in_memory_db, stored.id or "")

    assert [f.signature for f in functions] == ["transfer(address,uint256)", "totalSupply()", None]


@pytest.mark.asyncio
async def test_derive_stored_container_keeps_container_on_failure(token_document: dict[str, Any]) -> None:
    db = _FailingCreates(allowed=2)
    stored = await db.containers.create(parse_container(token_document))

    with pytest.raises(RuntimeError):
        await derive_stored_container(db, stored.id or "")

    assert await db.functions.count() == 0
    assert (await db.containers.find_by_id(stored.id or "")).name == "Token"


@pytest.mark.asyncio
async def test_derive_stored_container_unknown_id(in_memory_db: InMemoryRegistryDatabase) -> None:
    with pytest.raises(NotFoundError):
        await derive_stored_container(in_memory_db, "missing")


@pytest.mark.asyncio
async def test_ingest_container(in_memory_db: InMemoryRegistryDatabase, token_document: dict[str, Any]) -> None:
    container, functions = await ingest_container(in_memory_db, token_document)

    assert container.name == "Token"
    assert len(functions) == 3
    assert await in_memory_db.children(container.id or "").count() == 3


@pytest.mark.asyncio
async def test_ingest_container_rolls_back_and_wraps_errors(token_document: dict[str, Any]) -> None:
    db = _FailingCreates(allowed=1)

    with pytest.raises(IngestionError, match="insert failed") as exc_info:
        await ingest_container(db, token_document)

    assert exc_info.value.container_id is not None
    assert await db.containers.count() == 0
    assert await db.functions.count() == 0


@pytest.mark.asyncio
async def test_ingest_container_rejects_invalid_document(in_memory_db: InMemoryRegistryDatabase) -> None:
    with pytest.raises(RecordValidationError):
        await ingest_container(in_memory_db, {"name": "no tags"})

    assert await in_memory_db.containers.count() == 0


@pytest.mark.asyncio
async def test_delete_container_and_functions(
    in_memory_db: InMemoryRegistryDatabase, token_document: dict[str, Any]
) -> None:
    container, _ = await ingest_container(in_memory_db, token_document)

    assert await delete_container_and_functions(in_memory_db, container.id or "") == 3
    assert await in_memory_db.containers.count() == 0
    # a second call finds nothing left and does not fail
    assert await delete_container_and_functions(in_memory_db, container.id or "") == 0


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"kind": "javascript", "jssource": "export default 1"}, "export default 1"),
        ({"jssource": "x", "openapiid": "petstore"}, "x"),
        ({"pysource": "x = 1"}, ""),
        (None, ""),
    ],
)
def test_container_script(payload: dict[str, Any] | None, expected: str) -> None:
    container = PipeContainer.model_validate({"name": "c", "tags": [], "container": payload})

    assert container_script(container) == expected
