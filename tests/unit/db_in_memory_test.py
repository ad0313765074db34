"""Unit tests for the in-memory document collections."""

from typing import Any

import pytest

from pipe_registry.core.errors import NotFoundError, RecordValidationError
from pipe_registry.core.filters import Filter
from pipe_registry.db import InMemoryRegistryDatabase, PostgresRegistryDatabase, open_database
from pipe_registry.models import PipeContainer, PipeFunction, Tag


async def _seed(db: InMemoryRegistryDatabase, *names: str) -> list[PipeContainer]:
    return [await db.containers.create(PipeContainer(name=name, tags=[name.lower()])) for name in names]


@pytest.mark.asyncio
async def test_create_assigns_new_id(in_memory_db: InMemoryRegistryDatabase, token_document: dict[str, Any]) -> None:
    token_document["_id"] = "client-chosen"

    created = await in_memory_db.containers.create(PipeContainer.model_validate(token_document))

    assert created.id is not None
    assert created.id != "client-chosen"
    fetched = await in_memory_db.containers.find_by_id(created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_stored_document_uses_wire_names(in_memory_db: InMemoryRegistryDatabase) -> None:
    record = PipeFunction.model_validate({"containerid": "c1", "abiObj": {"name": "f", "type": "function"}})

    created = await in_memory_db.functions.create(record)

    document = in_memory_db.functions.documents[created.id or ""]
    assert document["_id"] == created.id
    assert document["abiObj"] == {"name": "f", "type": "function"}
    assert "signature" not in document


@pytest.mark.asyncio
async def test_returned_records_are_copies(in_memory_db: InMemoryRegistryDatabase) -> None:
    (created,) = await _seed(in_memory_db, "Token")
    fetched = await in_memory_db.containers.find_by_id(created.id or "")

    fetched.tags.append("mutated")

    again = await in_memory_db.containers.find_by_id(created.id or "")
    assert again.tags == ["token"]


@pytest.mark.asyncio
async def test_find_applies_filter(in_memory_db: InMemoryRegistryDatabase) -> None:
    await _seed(in_memory_db, "Alpha", "Beta", "Gamma")

    result = await in_memory_db.containers.find(Filter(where={"name": {"neq": "Beta"}}, order=["name DESC"]))

    assert [c.name for c in result] == ["Gamma", "Alpha"]


@pytest.mark.asyncio
async def test_count(in_memory_db: InMemoryRegistryDatabase) -> None:
    await _seed(in_memory_db, "Alpha", "Beta")

    assert await in_memory_db.containers.count() == 2
    assert await in_memory_db.containers.count({"tags": "beta"}) == 1


@pytest.mark.asyncio
async def test_update_by_id_merges_and_keeps_id(in_memory_db: InMemoryRegistryDatabase) -> None:
    (created,) = await _seed(in_memory_db, "Token")

    await in_memory_db.containers.update_by_id(created.id or "", {"uri": "ipfs://x", "_id": "other"})

    updated = await in_memory_db.containers.find_by_id(created.id or "")
    assert updated.uri == "ipfs://x"
    assert updated.name == "Token"
    assert updated.id == created.id


@pytest.mark.asyncio
async def test_update_rejects_invalid_record(in_memory_db: InMemoryRegistryDatabase) -> None:
    (created,) = await _seed(in_memory_db, "Token")

    with pytest.raises(RecordValidationError):
        await in_memory_db.containers.update_by_id(created.id or "", {"tags": None})

    assert (await in_memory_db.containers.find_by_id(created.id or "")).tags == ["token"]


@pytest.mark.asyncio
async def test_update_all_validates_before_writing(in_memory_db: InMemoryRegistryDatabase) -> None:
    await _seed(in_memory_db, "Alpha", "Beta")

    assert await in_memory_db.containers.update_all({"project": "demo"}, {"name": "Beta"}) == 1
    with pytest.raises(RecordValidationError):
        await in_memory_db.containers.update_all({"name": None})

    names = sorted(c.name for c in await in_memory_db.containers.find())
    assert names == ["Alpha", "Beta"]
    assert await in_memory_db.containers.count({"project": "demo"}) == 1


@pytest.mark.asyncio
async def test_missing_records_raise_not_found(in_memory_db: InMemoryRegistryDatabase) -> None:
    with pytest.raises(NotFoundError, match="PipeContainer nope not found"):
        await in_memory_db.containers.find_by_id("nope")
    with pytest.raises(NotFoundError):
        await in_memory_db.containers.update_by_id("nope", {"name": "x"})
    with pytest.raises(NotFoundError):
        await in_memory_db.tags.delete_by_id("nope")


@pytest.mark.asyncio
async def test_delete_all_returns_count(in_memory_db: InMemoryRegistryDatabase) -> None:
    await _seed(in_memory_db, "Alpha", "Beta", "Gamma")

    assert await in_memory_db.containers.delete_all({"name": {"inq": ["Alpha", "Gamma"]}}) == 2
    assert [c.name for c in await in_memory_db.containers.find()] == ["Beta"]


@pytest.mark.asyncio
async def test_children_are_scoped_to_container(in_memory_db: InMemoryRegistryDatabase) -> None:
    first = in_memory_db.children("c1")
    second = in_memory_db.children("c2")
    await first.create(PipeFunction.model_validate({"abiObj": {"name": "a"}, "containerid": "ignored"}))
    await first.create(PipeFunction.model_validate({"abiObj": {"name": "b"}}))
    await second.create(PipeFunction.model_validate({"abiObj": {"name": "c"}}))

    found = await first.find(Filter(where={"abiObj.name": "b"}))

    assert [f.abi_obj.name for f in found] == ["b"]
    assert await first.count() == 2
    assert await first.delete() == 2
    assert await second.count() == 1
    assert (await second.find())[0].containerid == "c2"


@pytest.mark.asyncio
async def test_tags_collection(in_memory_db: InMemoryRegistryDatabase) -> None:
    created = await in_memory_db.tags.create(Tag(name="erc20", description="Fungible tokens"))

    assert (await in_memory_db.tags.find_by_id(created.id or "")).description == "Fungible tokens"


@pytest.mark.asyncio
async def test_lifecycle_hooks_are_noops(in_memory_db: InMemoryRegistryDatabase) -> None:
    await in_memory_db.ensure_ready()
    assert await in_memory_db.ping()
    await in_memory_db.dispose()


@pytest.mark.parametrize(
    ("store", "expected"), [("memory", InMemoryRegistryDatabase), (" Postgres ", PostgresRegistryDatabase)]
)
def test_open_database_follows_store_setting(monkeypatch: pytest.MonkeyPatch, store: str, expected: type) -> None:
    monkeypatch.setenv("PIPE_REGISTRY_STORE", store)

    assert isinstance(open_database(), expected)


def test_open_database_rejects_unknown_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIPE_REGISTRY_STORE", "sqlite")

    with pytest.raises(ValueError, match="PIPE_REGISTRY_STORE"):
        open_database()
