from pipe_registry.config import store_backend
from pipe_registry.core.ports.database import RegistryDatabase
from pipe_registry.db.engine import get_engine
from pipe_registry.db.helpers import new_id
from pipe_registry.db.memory import InMemoryCollection, InMemoryRegistryDatabase
from pipe_registry.db.postgres import PostgresCollection, PostgresRegistryDatabase
from pipe_registry.db.relations import ContainerFunctions


def open_database() -> RegistryDatabase:
    """Build the store selected by ``PIPE_REGISTRY_STORE``."""
    if store_backend() == "memory":
        return InMemoryRegistryDatabase()
    return PostgresRegistryDatabase(get_engine())


__all__ = [
    "ContainerFunctions",
    "InMemoryCollection",
    "InMemoryRegistryDatabase",
    "PostgresCollection",
    "PostgresRegistryDatabase",
    "get_engine",
    "new_id",
    "open_database",
]
