import logging
from typing import Any

from pydantic import ValidationError

from pipe_registry.core.errors import IngestionError, NotFoundError, RecordValidationError
from pipe_registry.core.ingest import (
    IngestionSupervisor,
    delete_container_functions,
    derive_functions,
    rollback_container,
)
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.models import PipeContainer, PipeFunction

logger = logging.getLogger(__name__)


def parse_container(data: dict[str, Any]) -> PipeContainer:
    """Validate a raw container document; a missing ``name`` or ``tags`` raises ``RecordValidationError``."""
    try:
        return PipeContainer.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise RecordValidationError(f"Invalid container: {', '.join(fields)}", errors=exc.errors()) from exc


async def create_container_with_functions(
    database: RegistryDatabase,
    supervisor: IngestionSupervisor,
    container: PipeContainer,
) -> PipeContainer:
    """Persist ``container`` and derive its functions in the background.

    Returns as soon as the container is stored; a failed derivation removes
    the container again.
    """
    created = await database.containers.create(container)
    supervisor.schedule(database, created)
    return created


async def derive_stored_container(database: RegistryDatabase, container_id: str, verify: bool = True) -> list[PipeFunction]:
    """Derive functions for an already stored container and wait for the result.

    On failure the partially created functions are removed and the error is
    re-raised; the container itself is kept.
    """
    container = await database.containers.find_by_id(container_id)
    try:
        return await derive_functions(database, container, verify=verify)
    except Exception:
        removed = await delete_container_functions(database, container_id)
        logger.warning("Derivation for container %s failed, removed %d partial functions", container_id, removed)
        raise


async def ingest_container(database: RegistryDatabase, data: dict[str, Any], verify: bool = True) -> tuple[PipeContainer, list[PipeFunction]]:
    """Create a container from a raw document and derive its functions before returning."""
    container = await database.containers.create(parse_container(data))
    assert container.id is not None
    try:
        functions = await derive_functions(database, container, verify=verify)
    except Exception as exc:
        await rollback_container(database, container.id)
        if isinstance(exc, IngestionError):
            raise
        raise IngestionError(str(exc), container_id=container.id) from exc
    return container, functions


async def delete_container_and_functions(database: RegistryDatabase, container_id: str) -> int:
    """Delete the functions of a container, then the container when it still exists."""
    removed = await delete_container_functions(database, container_id)
    try:
        await database.containers.delete_by_id(container_id)
    except NotFoundError:
        logger.debug("Container %s was already gone while deleting its functions", container_id)
    return removed


def container_script(container: PipeContainer) -> str:
    """Return the JavaScript source embedded in a container, or an empty string."""
    return getattr(container.container, "jssource", None) or ""
