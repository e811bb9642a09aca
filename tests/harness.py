"""Test harness for unit and integration tests.

Unit tests run entirely in memory. Integration tests need a MongoDB server
reachable at COMMENTARY_TEST_MONGO_URI and are skipped without it.
"""

import os

import pytest
import pytest_asyncio

from commentary.config import DatabaseSettings, Settings
from commentary.domain.model import DocumentSchema
from commentary.interface.manager import CommentManager
from commentary.util.di import Component
from tests.di import build_test_container

TEST_MONGO_URI_ENV = "COMMENTARY_TEST_MONGO_URI"


def integration_settings() -> Settings:
    """Settings pointing at the throwaway integration database.

    Skips the calling test when no server is configured.
    """
    uri = os.environ.get(TEST_MONGO_URI_ENV)
    if not uri:
        pytest.skip(f"{TEST_MONGO_URI_ENV} not set")
    return Settings(
        environment="test",
        database=DatabaseSettings(
            uri=uri,
            name="commentary_test",
            server_selection_timeout_ms=2000,
        ),
    )


def create_env_fixture(
    unmock: set[Component] | None = None,
    schema: DocumentSchema | None = None,
):
    """Factory for creating test environment fixtures.

    Creates a pytest fixture that:
    - Builds a test container with specified unmocking
    - Yields request-scoped container for service access
    - Drops the integration database afterwards when persistence is real

    Args:
        unmock: Components to use real implementations for
        schema: Custom document models

    Returns:
        Pytest fixture function that yields AsyncContainer

    Usage:
        # Unit tests - everything mocked
        unit_env = create_env_fixture()

        # Integration tests - real MongoDB
        integration_env = create_env_fixture(unmock={"persistence"})

        @pytest.mark.asyncio
        async def test_insert(unit_env):
            repo = await unit_env.get(CommentRepository)
            await repo.insert(Comment(...))
    """
    unmock = unmock or set()

    @pytest_asyncio.fixture
    async def _test_environment():
        settings = integration_settings() if "persistence" in unmock else None
        container = build_test_container(
            unmock=unmock, settings=settings, schema=schema
        )

        try:
            async with container() as request_container:
                yield request_container
        finally:
            if settings is not None:
                await _drop_database(container)
            await container.close()

    return _test_environment


def create_manager_fixture(schema: DocumentSchema | None = None):
    """Factory for fixtures yielding an in-memory CommentManager.

    Args:
        schema: Custom document models

    Returns:
        Pytest fixture function that yields CommentManager
    """

    @pytest_asyncio.fixture
    async def _manager():
        manager = CommentManager(build_test_container(schema=schema))
        async with manager:
            yield manager

    return _manager


async def _drop_database(container) -> None:
    from commentary.persistence.database import MongoDatabase

    database = await container.get(MongoDatabase)
    await database.client.drop_database(database.settings.name)
