from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pipe_registry.api.lifespan import lifespan
from pipe_registry.api.routes.containers import router as containers_router
from pipe_registry.api.routes.functions import router as functions_router
from pipe_registry.api.routes.health import router as health_router
from pipe_registry.api.routes.root import router as root_router
from pipe_registry.api.routes.tags import router as tags_router
from pipe_registry.core.errors import IngestionError, InvalidFilterError, NotFoundError, RecordValidationError

logger = logging.getLogger(__name__)


async def _not_found(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _invalid_record(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RecordValidationError)
    errors = [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors]
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": errors})


async def _invalid_filter(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _ingestion_failed(_request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Function derivation failed: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pipe Registry API",
        description="Store pipe containers and the functions derived from their ABI.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(RecordValidationError, _invalid_record)
    app.add_exception_handler(InvalidFilterError, _invalid_filter)
    app.add_exception_handler(IngestionError, _ingestion_failed)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(containers_router)
    app.include_router(functions_router)
    app.include_router(tags_router)

    return app
