import copy
from typing import Any, Generic

from pipe_registry.core.errors import NotFoundError
from pipe_registry.core.filters import Filter, Where, apply_filter, matches
from pipe_registry.db.helpers import ID_FIELD, ModelT, from_document, merge_document, new_id, to_document
from pipe_registry.db.relations import ContainerFunctions
from pipe_registry.models import PipeContainer, PipeFunction, Tag


class InMemoryCollection(Generic[ModelT]):
    """Document collection kept in a dict, in insertion order."""

    def __init__(self, model: type[ModelT], entity: str) -> None:
        self.model = model
        self.entity = entity
        self.documents: dict[str, dict[str, Any]] = {}

    async def create(self, record: ModelT) -> ModelT:
        record_id = new_id()
        document = to_document(record, record_id)
        self.documents[record_id] = document
        return from_document(self.model, copy.deepcopy(document))

    async def find_by_id(self, record_id: str) -> ModelT:
        document = self.documents.get(record_id)
        if document is None:
            raise NotFoundError(self.entity, record_id)
        return from_document(self.model, copy.deepcopy(document))

    async def find(self, flt: Filter | None = None) -> list[ModelT]:
        selected = apply_filter(self.documents.values(), flt)
        return [from_document(self.model, copy.deepcopy(doc)) for doc in selected]

    async def update_by_id(self, record_id: str, changes: dict[str, Any]) -> None:
        document = self.documents.get(record_id)
        if document is None:
            raise NotFoundError(self.entity, record_id)
        self.documents[record_id] = merge_document(self.model, document, changes)

    async def update_all(self, changes: dict[str, Any], where: Where | None = None) -> int:
        targets = [doc for doc in self.documents.values() if matches(doc, where)]
        # validate everything before writing anything
        updated = [merge_document(self.model, doc, changes) for doc in targets]
        for document in updated:
            self.documents[document[ID_FIELD]] = document
        return len(updated)

    async def delete_by_id(self, record_id: str) -> None:
        if self.documents.pop(record_id, None) is None:
            raise NotFoundError(self.entity, record_id)

    async def delete_all(self, where: Where | None = None) -> int:
        doomed = [record_id for record_id, doc in self.documents.items() if matches(doc, where)]
        for record_id in doomed:
            del self.documents[record_id]
        return len(doomed)

    async def count(self, where: Where | None = None) -> int:
        return sum(1 for doc in self.documents.values() if matches(doc, where))


class InMemoryRegistryDatabase:
    def __init__(self) -> None:
        self.containers = InMemoryCollection(PipeContainer, "PipeContainer")
        self.functions = InMemoryCollection(PipeFunction, "PipeFunction")
        self.tags = InMemoryCollection(Tag, "Tag")

    def children(self, container_id: str) -> ContainerFunctions:
        return ContainerFunctions(self.functions, container_id)

    async def ensure_ready(self) -> None:
        pass

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        pass
