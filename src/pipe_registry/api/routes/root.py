from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Discovery endpoint listing the resource collections."""
    return {
        "meta": {
            "title": "Pipe Registry API",
            "description": "Store pipe containers and the functions derived from their ABI.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "pipecontainer": "/pipecontainer",
            "pipefunction": "/pipefunction",
            "tag": "/tag",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
