"""Session-scoped fixtures for integration tests against a PostgreSQL container."""

import shutil
import warnings
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from alembic.config import Config
from pipe_registry.db import PostgresRegistryDatabase
from pipe_registry.db.migrations import alembic_config as build_alembic_config
from pipe_registry.db.migrations import revert_migrations, run_migrations

POSTGRES_IMAGE = "postgres:16-alpine"


@pytest.fixture(scope="session")
def postgres_container() -> Generator[DockerContainer, None, None]:
    """Start a plain PostgreSQL container for the session."""
    if shutil.which("docker") is None:
        pytest.skip("docker is not available")
    container = DockerContainer(POSTGRES_IMAGE).with_exposed_ports(5432).with_env("POSTGRES_PASSWORD", "postgres")
    container.start()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        # the server restarts once after initdb, so wait for the second ready line
        wait_for_logs(container, r"ready to accept connections[\s\S]*ready to accept connections", timeout=60)
    yield container
    container.stop()


@pytest.fixture(scope="session")
def test_db_url(postgres_container: DockerContainer) -> str:
    """Async connection URL for the test database."""
    host = postgres_container.get_container_host_ip()
    port = postgres_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://postgres:postgres@{host}:{port}/postgres"


@pytest.fixture(scope="session")
def alembic_config(test_db_url: str) -> Config:
    """Alembic config pointed at the test database."""
    return build_alembic_config(test_db_url)


@pytest.fixture(scope="session")
def _run_migrations(test_db_url: str) -> Generator[None, None, None]:
    """Run migrations once per session, cleanup on teardown."""
    run_migrations(test_db_url)
    yield
    revert_migrations(test_db_url)


@pytest_asyncio.fixture
async def engine(_run_migrations: None, test_db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test engine so each event loop gets its own connection pool."""
    instance = create_async_engine(test_db_url, future=True)
    async with instance.begin() as conn:
        await conn.execute(sa.text("TRUNCATE pipe_containers, pipe_functions, tags"))
    yield instance
    await instance.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[PostgresRegistryDatabase, None]:
    """Per-test PostgresRegistryDatabase instance."""
    instance = PostgresRegistryDatabase(engine)
    await instance.ensure_ready()
    yield instance
