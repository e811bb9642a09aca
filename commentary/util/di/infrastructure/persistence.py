"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire

from commentary.config import Settings
from commentary.domain.model import DocumentSchema
from commentary.domain.repository import CommentRepository
from commentary.persistence.database import MongoDatabase, create_database
from commentary.persistence.repository import MongoCommentRepository
from commentary.util.di.base import ProviderBase
from commentary.util.observability import instrument_pymongo


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using MongoDB."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_database(self, settings: Settings) -> AsyncIterator[MongoDatabase]:
        """Provide the connected database handle.

        Connects when first requested and closes when the container closes.
        """
        # Instrument before the client exists so its commands are traced
        instrument_pymongo()
        database = create_database(settings)
        await database.connect()
        logfire.info(
            "Database connected",
            database=settings.database.name,
            collection=settings.database.collection,
        )
        try:
            yield database
        finally:
            await database.close()
            logfire.info("Database connection closed")

    @provide(scope=Scope.APP)
    def get_comment_repository(
        self, database: MongoDatabase, schema: DocumentSchema
    ) -> CommentRepository:
        """Provide Comment repository."""
        return MongoCommentRepository(
            database.comments, database.counters, model=schema.comment_model
        )
