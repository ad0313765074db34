from fastapi import APIRouter, Depends, Response, status

from pipe_registry.api.dependencies import get_database
from pipe_registry.api.schemas import HealthResponse, ReadinessResponse
from pipe_registry.core.ports.database import RegistryDatabase

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness check: the process answers."""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    db: RegistryDatabase = Depends(get_database),
) -> ReadinessResponse:
    """Readiness check: the document store answers."""
    if await db.ping():
        return ReadinessResponse()
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", database="down")
