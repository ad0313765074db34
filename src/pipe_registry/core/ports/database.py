from typing import Any, Protocol, TypeVar

from pipe_registry.core.filters import Filter, Where
from pipe_registry.models import PipeContainer, PipeFunction, Tag

ModelT = TypeVar("ModelT")


class DocumentRepository(Protocol[ModelT]):
    async def create(self, record: ModelT) -> ModelT: ...

    async def find_by_id(self, record_id: str) -> ModelT: ...

    async def find(self, flt: Filter | None = None) -> list[ModelT]: ...

    async def update_by_id(self, record_id: str, changes: dict[str, Any]) -> None: ...

    async def update_all(self, changes: dict[str, Any], where: Where | None = None) -> int: ...

    async def delete_by_id(self, record_id: str) -> None: ...

    async def delete_all(self, where: Where | None = None) -> int: ...

    async def count(self, where: Where | None = None) -> int: ...


class ContainerFunctionsRepository(Protocol):
    """Function records scoped to one container id."""

    container_id: str

    async def create(self, record: PipeFunction) -> PipeFunction: ...

    async def find(self, flt: Filter | None = None) -> list[PipeFunction]: ...

    async def count(self, where: Where | None = None) -> int: ...

    async def delete(self, where: Where | None = None) -> int: ...


class RegistryDatabase(Protocol):
    containers: DocumentRepository[PipeContainer]
    functions: DocumentRepository[PipeFunction]
    tags: DocumentRepository[Tag]

    def children(self, container_id: str) -> ContainerFunctionsRepository: ...

    async def ensure_ready(self) -> None: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
