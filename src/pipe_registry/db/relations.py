from pipe_registry.core.filters import Filter, Where, scope_where
from pipe_registry.core.ports.database import DocumentRepository
from pipe_registry.models import PipeFunction


class ContainerFunctions:
    """The ``functions`` relation of one container: every call is scoped by ``containerid``."""

    def __init__(self, functions: DocumentRepository[PipeFunction], container_id: str) -> None:
        self._functions = functions
        self.container_id = container_id

    async def create(self, record: PipeFunction) -> PipeFunction:
        return await self._functions.create(record.model_copy(update={"containerid": self.container_id}))

    async def find(self, flt: Filter | None = None) -> list[PipeFunction]:
        flt = flt or Filter()
        scoped = flt.model_copy(update={"where": scope_where(flt.where, containerid=self.container_id)})
        return await self._functions.find(scoped)

    async def count(self, where: Where | None = None) -> int:
        return await self._functions.count(scope_where(where, containerid=self.container_id))

    async def delete(self, where: Where | None = None) -> int:
        return await self._functions.delete_all(scope_where(where, containerid=self.container_id))
