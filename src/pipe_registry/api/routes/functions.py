from fastapi import APIRouter

from pipe_registry.api.routes.crud import add_crud_routes
from pipe_registry.models import PipeFunction

router = APIRouter(prefix="/pipefunction", tags=["pipefunction"])

add_crud_routes(
    router,
    model=PipeFunction,
    repository=lambda db: db.functions,
    entity="PipeFunction",
    bulk_delete=True,
)
