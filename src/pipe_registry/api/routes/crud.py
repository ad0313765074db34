"""Standard create/read/update/delete/count endpoints shared by every document resource."""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel

from pipe_registry.api.dependencies import filter_query, get_database, where_query
from pipe_registry.api.schemas import CountResponse
from pipe_registry.core.filters import Filter, Where
from pipe_registry.core.ports.database import DocumentRepository, RegistryDatabase

RepositoryGetter = Callable[[RegistryDatabase], DocumentRepository[Any]]


def add_crud_routes(
    router: APIRouter,
    *,
    model: type[BaseModel],
    repository: RepositoryGetter,
    entity: str,
    bulk_delete: bool = False,
) -> None:
    """Register the CRUD endpoints for ``model`` on ``router``.

    ``/count`` is registered before ``/{record_id}`` so it is not captured as an id.
    """

    async def create(body: model, db: RegistryDatabase = Depends(get_database)) -> Any:  # type: ignore[valid-type]
        return await repository(db).create(body)

    async def count(where: Where | None = Depends(where_query), db: RegistryDatabase = Depends(get_database)) -> CountResponse:
        return CountResponse(count=await repository(db).count(where))

    async def find(flt: Filter = Depends(filter_query), db: RegistryDatabase = Depends(get_database)) -> Any:
        return await repository(db).find(flt)

    async def update_all(
        changes: dict[str, Any] = Body(...),
        where: Where | None = Depends(where_query),
        db: RegistryDatabase = Depends(get_database),
    ) -> CountResponse:
        return CountResponse(count=await repository(db).update_all(changes, where))

    async def delete_all(where: Where | None = Depends(where_query), db: RegistryDatabase = Depends(get_database)) -> CountResponse:
        return CountResponse(count=await repository(db).delete_all(where))

    async def find_by_id(record_id: str, db: RegistryDatabase = Depends(get_database)) -> Any:
        return await repository(db).find_by_id(record_id)

    async def update_by_id(
        record_id: str,
        changes: dict[str, Any] = Body(...),
        db: RegistryDatabase = Depends(get_database),
    ) -> Response:
        await repository(db).update_by_id(record_id, changes)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    async def delete_by_id(record_id: str, db: RegistryDatabase = Depends(get_database)) -> Response:
        await repository(db).delete_by_id(record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    router.add_api_route(
        "",
        create,
        methods=["POST"],
        response_model=model,
        summary=f"Create a {entity}",
    )
    router.add_api_route("/count", count, methods=["GET"], response_model=CountResponse, summary=f"Count {entity} records")
    router.add_api_route(
        "",
        find,
        methods=["GET"],
        response_model=list[model],  # type: ignore[valid-type]
        summary=f"List {entity} records",
    )
    router.add_api_route(
        "",
        update_all,
        methods=["PATCH"],
        response_model=CountResponse,
        summary=f"Update every {entity} matching where",
    )
    if bulk_delete:
        router.add_api_route(
            "",
            delete_all,
            methods=["DELETE"],
            response_model=CountResponse,
            summary=f"Delete every {entity} matching where",
        )
    router.add_api_route(
        "/{record_id}",
        find_by_id,
        methods=["GET"],
        response_model=model,
        summary=f"Get a {entity} by id",
    )
    router.add_api_route(
        "/{record_id}",
        update_by_id,
        methods=["PATCH"],
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        summary=f"Update a {entity} by id",
    )
    router.add_api_route(
        "/{record_id}",
        delete_by_id,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        summary=f"Delete a {entity} by id",
    )
