import asyncio
import logging
import time
from dataclasses import dataclass

from pipe_registry.core.errors import IngestionError, NotFoundError
from pipe_registry.core.filters import Filter, escape_like
from pipe_registry.core.functions import assemble_function
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.core.signature import build_signature
from pipe_registry.models import PipeContainer, PipeFunction

logger = logging.getLogger(__name__)


async def derive_functions(
    database: RegistryDatabase,
    container: PipeContainer,
    verify: bool = True,
) -> list[PipeFunction]:
    """Create one function record per ABI entry of a persisted container, in ABI order.

    With ``verify`` on, each record is read back by its new id and a miss
    raises ``IngestionError`` before any further entry is processed.
    """
    if container.id is None:
        raise IngestionError("Container must be persisted before deriving its functions.")

    payload = container.container
    abi = (payload.abi if payload else None) or []
    functions = database.children(container.id)

    created: list[PipeFunction] = []
    for entry in abi:
        signature = build_signature(entry)
        record = await functions.create(assemble_function(container, entry, signature))

        if verify and not await functions.find(Filter(where={"_id": record.id})):
            label = signature or entry.name or "<unnamed>"
            raise IngestionError(f"Function {label} was not created.", container_id=container.id)
        created.append(record)
    return created


async def delete_container_functions(database: RegistryDatabase, container_id: str) -> int:
    """Delete every function whose container id equals or starts with ``container_id``."""
    return await database.functions.delete_all({"containerid": {"like": f"{escape_like(container_id)}%"}})


async def rollback_container(
    database: RegistryDatabase,
    container_id: str,
    log: logging.Logger | None = None,
) -> None:
    """Remove a container and its functions after failed ingestion; errors are logged only."""
    log = log or logger
    try:
        removed = await delete_container_functions(database, container_id)
    except Exception:
        log.exception("Rollback could not delete functions of container %s", container_id)
    else:
        log.info("Rollback removed %d functions of container %s", removed, container_id)

    try:
        await database.containers.delete_by_id(container_id)
    except NotFoundError:
        log.info("Rollback found container %s already deleted", container_id)
    except Exception:
        log.exception("Rollback could not delete container %s", container_id)


@dataclass(frozen=True)
class DerivationOutcome:
    container_id: str
    created: int
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IngestionSupervisor:
    """Runs function derivation as detached tasks and rolls back containers whose derivation fails.

    Derivations for the same container id run one at a time.
    """

    def __init__(self, verify: bool = True, log: logging.Logger | None = None) -> None:
        self.verify = verify
        self._log = log or logger
        self._tasks: set[asyncio.Task[DerivationOutcome]] = set()
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, database: RegistryDatabase, container: PipeContainer) -> asyncio.Task[DerivationOutcome]:
        if container.id is None:
            raise IngestionError("Container must be persisted before deriving its functions.")
        task = asyncio.create_task(self.run(database, container), name=f"derive-functions-{container.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._log.debug("Scheduled function derivation for container %s", container.id)
        return task

    async def run(self, database: RegistryDatabase, container: PipeContainer) -> DerivationOutcome:
        assert container.id is not None
        container_id = container.id
        lock = self._acquire_lock(container_id)
        try:
            async with lock:
                return await self._derive(database, container, container_id)
        finally:
            self._release_lock(container_id)

    async def wait_idle(self) -> list[DerivationOutcome]:
        """Wait until every scheduled derivation has finished."""
        outcomes: list[DerivationOutcome] = []
        while self._tasks:
            outcomes.extend(await asyncio.gather(*list(self._tasks)))
        return outcomes

    async def _derive(self, database: RegistryDatabase, container: PipeContainer, container_id: str) -> DerivationOutcome:
        t0 = time.perf_counter()
        try:
            created = await derive_functions(database, container, verify=self.verify)
        except Exception as exc:
            self._log.warning(
                "Deriving functions for container %s failed, rolling back: %s",
                container_id,
                exc,
                exc_info=not isinstance(exc, IngestionError),
                extra={"container_id": container_id},
            )
            await rollback_container(database, container_id, log=self._log)
            return DerivationOutcome(container_id=container_id, created=0, error=exc)

        elapsed = time.perf_counter() - t0
        self._log.info(
            "Derived %d functions for container %s in %.3fs",
            len(created),
            container_id,
            elapsed,
            extra={"container_id": container_id},
        )
        return DerivationOutcome(container_id=container_id, created=len(created))

    def _acquire_lock(self, container_id: str) -> asyncio.Lock:
        lock = self._locks.setdefault(container_id, asyncio.Lock())
        self._users[container_id] = self._users.get(container_id, 0) + 1
        return lock

    def _release_lock(self, container_id: str) -> None:
        self._users[container_id] -= 1
        if self._users[container_id] == 0:
            del self._users[container_id]
            del self._locks[container_id]
