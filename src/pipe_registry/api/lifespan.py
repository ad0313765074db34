from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pipe_registry.api.dependencies import get_supervisor, shutdown_database
from pipe_registry.config import store_backend

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Validate configuration on startup; drain pending derivations and dispose the store on shutdown."""
    backend = store_backend()
    logger.info("Pipe registry starting with %s store", backend)
    yield
    pending = get_supervisor().pending
    if pending:
        logger.info("Waiting for %d pending function derivations", pending)
    await shutdown_database()
