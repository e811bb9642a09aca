"""Database connection management.

Owns the MongoDB client: connects once, creates indexes, and closes the
client when the owning container shuts down.
"""

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure, PyMongoError

from commentary.config import Settings
from commentary.domain.error import StorageConnectionError, StorageError


class MongoDatabase:
    """Process-wide handle on the comment collections."""

    def __init__(self, settings: Settings) -> None:
        """Create the client. No connection is made until connect().

        Args:
            settings: Library settings with database configuration
        """
        self.settings = settings.database
        self.client: AsyncMongoClient = AsyncMongoClient(
            self.settings.uri,
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
            **self.settings.options,
        )
        database = self.client[self.settings.name]
        self.comments: AsyncCollection = database[self.settings.collection]
        self.counters: AsyncCollection = database[self.settings.counters_collection]

    async def connect(self) -> None:
        """Verify the server is reachable and create indexes.

        Raises:
            StorageConnectionError: If the server cannot be reached
            StorageError: If index creation fails
        """
        try:
            await self.client.admin.command("ping")
        except ConnectionFailure as e:
            raise StorageConnectionError(
                f"Cannot reach MongoDB at {self.settings.uri}: {e}"
            ) from e

        try:
            await self.ensure_indexes()
        except PyMongoError as e:
            raise StorageError(f"Index creation failed: {e}") from e

    async def ensure_indexes(self) -> None:
        """Create the indexes backing identifier uniqueness and ordering."""
        await self.comments.create_index([("commentId", ASCENDING)], unique=True)
        await self.comments.create_index([("order", ASCENDING)], unique=True)
        await self.comments.create_index([("postId", ASCENDING)])
        # Reply IDs are unique across documents. Comments without replies
        # have no key and must stay out of the index.
        await self.comments.create_index(
            [("replies.replyId", ASCENDING)],
            unique=True,
            partialFilterExpression={"replies.replyId": {"$exists": True}},
        )

    async def close(self) -> None:
        """Close the client and its connection pool."""
        await self.client.close()


def create_database(settings: Settings) -> MongoDatabase:
    """Create the database handle.

    Args:
        settings: Library settings with database configuration

    Returns:
        Unconnected database handle
    """
    return MongoDatabase(settings)
