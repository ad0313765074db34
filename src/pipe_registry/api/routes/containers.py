from fastapi import APIRouter, Depends, Response

from pipe_registry.api.dependencies import filter_query, get_database, get_supervisor
from pipe_registry.api.routes.crud import add_crud_routes
from pipe_registry.api.schemas import CountResponse
from pipe_registry.config import verify_created_functions
from pipe_registry.core.containers import (
    container_script,
    create_container_with_functions,
    delete_container_and_functions,
    derive_stored_container,
)
from pipe_registry.core.filters import Filter
from pipe_registry.core.ingest import IngestionSupervisor
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.models import PipeContainer, PipeFunction

router = APIRouter(prefix="/pipecontainer", tags=["pipecontainer"])

add_crud_routes(router, model=PipeContainer, repository=lambda db: db.containers, entity="PipeContainer")


@router.post("/pipefunctions", response_model=PipeContainer)
async def create_with_functions(
    body: PipeContainer,
    db: RegistryDatabase = Depends(get_database),
    supervisor: IngestionSupervisor = Depends(get_supervisor),
) -> PipeContainer:
    """Store a container and derive its functions in the background.

    The container is returned before its functions exist. If derivation
    fails, the container and any functions created so far are deleted.
    """
    return await create_container_with_functions(db, supervisor, body)


@router.get(
    "/{record_id}/js",
    response_class=Response,
    responses={200: {"content": {"application/javascript": {}}, "description": "Embedded JavaScript source"}},
)
async def script(record_id: str, db: RegistryDatabase = Depends(get_database)) -> Response:
    container = await db.containers.find_by_id(record_id)
    return Response(content=container_script(container), media_type="application/javascript")


@router.post("/{record_id}/pipefunctions", response_model=list[PipeFunction])
async def derive_container_functions(record_id: str, db: RegistryDatabase = Depends(get_database)) -> list[PipeFunction]:
    """Derive functions for a stored container and wait for them."""
    return await derive_stored_container(db, record_id, verify=verify_created_functions())


@router.get("/{record_id}/pipefunctions", response_model=list[PipeFunction])
async def list_functions(
    record_id: str,
    flt: Filter = Depends(filter_query),
    db: RegistryDatabase = Depends(get_database),
) -> list[PipeFunction]:
    return await db.children(record_id).find(flt)


@router.delete("/{record_id}/pipefunctions", response_model=CountResponse)
async def delete_functions(record_id: str, db: RegistryDatabase = Depends(get_database)) -> CountResponse:
    """Delete the container's functions and the container; returns the number of functions removed."""
    return CountResponse(count=await delete_container_and_functions(db, record_id))
