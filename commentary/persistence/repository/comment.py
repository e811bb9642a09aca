"""MongoDB implementation of Comment repository."""

from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from commentary.domain.error import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from commentary.domain.model import Comment
from commentary.domain.repository import CommentRepository, Filter, Sort
from commentary.domain.value import (
    CommentId,
    DeleteResult,
    ReactionKind,
    UpdateResult,
)

# Documents are read without Mongo's own _id; comments are keyed by commentId
PROJECTION = {"_id": False}


def _storage_error(e: PyMongoError) -> StorageError:
    """Translate a driver error into the domain taxonomy."""
    if isinstance(e, ConnectionFailure):
        return StorageConnectionError(str(e))
    return StorageError(str(e))


class MongoCommentRepository(CommentRepository):
    """MongoDB implementation of CommentRepository."""

    def __init__(
        self,
        comments: AsyncCollection,
        counters: AsyncCollection,
        model: type[Comment] = Comment,
    ) -> None:
        """Initialize repository with its collections.

        Args:
            comments: Collection holding comment documents
            counters: Collection holding sequence counters
            model: Comment model used to parse stored documents
        """
        self.comments = comments
        self.counters = counters
        self.model = model

    def _to_comment(self, document: Mapping[str, Any]) -> Comment:
        try:
            return self.model.model_validate(document)
        except PydanticValidationError as e:
            raise StorageError(
                f"Stored comment does not parse: {document.get('commentId')}"
            ) from e

    async def find_one(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> Optional[Comment]:
        """Find the first comment matching a filter."""
        try:
            document = await self.comments.find_one(
                dict(filter), PROJECTION, sort=list(sort) if sort else None
            )
        except PyMongoError as e:
            raise _storage_error(e) from e
        return self._to_comment(document) if document else None

    async def find_many(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> list[Comment]:
        """Find all comments matching a filter."""
        try:
            cursor = self.comments.find(dict(filter), PROJECTION)
            if sort:
                cursor = cursor.sort(list(sort))
            documents = await cursor.to_list()
        except PyMongoError as e:
            raise _storage_error(e) from e
        return [self._to_comment(document) for document in documents]

    async def insert(self, comment: Comment) -> Comment:
        """Insert a new comment."""
        try:
            await self.comments.insert_one(comment.to_document())
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError("Comment", comment.comment_id) from e
        except PyMongoError as e:
            raise _storage_error(e) from e
        return comment

    async def save(self, comment: Comment) -> Comment:
        """Replace a stored comment, checking its version."""
        saved = comment.model_copy(update={"version": comment.version + 1})
        try:
            result = await self.comments.replace_one(
                {"commentId": comment.comment_id, "version": comment.version},
                saved.to_document(),
            )
        except MongoDuplicateKeyError as e:
            # Only the replies.replyId index can collide on a replace
            raise DuplicateKeyError("Reply", str(e.details or e)) from e
        except PyMongoError as e:
            raise _storage_error(e) from e

        if result.matched_count == 0:
            try:
                exists = await self.comments.count_documents(
                    {"commentId": comment.comment_id}, limit=1
                )
            except PyMongoError as e:
                raise _storage_error(e) from e
            if not exists:
                raise NotFoundError("Comment", comment.comment_id)
            raise ConflictError("Comment", comment.comment_id)
        return saved

    async def update_many(
        self, filter: Filter, values: Mapping[str, Any]
    ) -> UpdateResult:
        """Set fields on every comment matching a filter."""
        try:
            result = await self.comments.update_many(
                dict(filter), {"$set": dict(values), "$inc": {"version": 1}}
            )
        except PyMongoError as e:
            raise _storage_error(e) from e
        return UpdateResult(
            matched_count=result.matched_count, modified_count=result.modified_count
        )

    async def delete_many(self, filter: Filter) -> DeleteResult:
        """Permanently delete every comment matching a filter."""
        try:
            result = await self.comments.delete_many(dict(filter))
        except PyMongoError as e:
            raise _storage_error(e) from e
        return DeleteResult(deleted_count=result.deleted_count)

    async def add_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Atomically add a voter with $addToSet."""
        return await self._update_one(
            comment_id, {"$addToSet": {f"reactions.{kind.value}": username}}
        )

    async def remove_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Atomically remove a voter with $pull."""
        return await self._update_one(
            comment_id, {"$pull": {f"reactions.{kind.value}": username}}
        )

    async def next_sequence(self, name: str, floor: int = 0) -> int:
        """Atomically draw the next counter value.

        Uses a pipeline update so that raising the counter to ``floor`` and
        incrementing it happen in one server-side operation. Counters are
        namespaced by collection.
        """
        try:
            counter = await self.counters.find_one_and_update(
                {"_id": f"{self.comments.name}.{name}"},
                [
                    {
                        "$set": {
                            "seq": {
                                "$add": [
                                    {"$max": [{"$ifNull": ["$seq", 0]}, floor]},
                                    1,
                                ]
                            }
                        }
                    }
                ],
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise _storage_error(e) from e
        return int(counter["seq"])

    async def _update_one(
        self, comment_id: CommentId, update: dict[str, Any]
    ) -> UpdateResult:
        try:
            result = await self.comments.update_one(
                {"commentId": comment_id}, {**update, "$inc": {"version": 1}}
            )
        except PyMongoError as e:
            raise _storage_error(e) from e
        return UpdateResult(
            matched_count=result.matched_count, modified_count=result.modified_count
        )
