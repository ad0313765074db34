from __future__ import annotations

from pydantic import BaseModel


class CountResponse(BaseModel):
    count: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    database: str = "up"
