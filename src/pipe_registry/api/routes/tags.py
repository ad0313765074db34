from fastapi import APIRouter

from pipe_registry.api.routes.crud import add_crud_routes
from pipe_registry.models import Tag

router = APIRouter(prefix="/tag", tags=["tag"])

add_crud_routes(router, model=Tag, repository=lambda db: db.tags, entity="Tag")
