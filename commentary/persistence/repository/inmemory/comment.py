"""In-memory comment repository for testing."""

from copy import deepcopy
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from commentary.domain.error import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
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

from .query import matches, set_path, sort_documents


class InMemoryCommentRepository(CommentRepository):
    """In-memory implementation of CommentRepository for testing.

    Stores plain documents, as MongoDB would, and enforces the same unique
    keys as the Mongo indexes: ``commentId``, ``order`` and
    ``replies.replyId``.
    """

    def __init__(self, model: type[Comment] = Comment) -> None:
        self.model = model
        self._documents: dict[str, dict[str, Any]] = {}
        self._counters: dict[str, int] = {}

    def _select(self, filter: Filter, sort: Optional[Sort] = None) -> list[dict]:
        found = [d for d in self._documents.values() if matches(d, filter)]
        return sort_documents(found, sort)

    def _to_comment(self, document: Mapping[str, Any]) -> Comment:
        try:
            return self.model.model_validate(deepcopy(document))
        except PydanticValidationError as e:
            raise StorageError(
                f"Stored comment does not parse: {document.get('commentId')}"
            ) from e

    def _check_unique(self, document: Mapping[str, Any]) -> None:
        comment_id = document["commentId"]
        reply_ids = [r["replyId"] for r in document.get("replies", [])]
        for other in self._documents.values():
            if other["commentId"] == comment_id:
                continue
            if other.get("order") == document.get("order"):
                raise DuplicateKeyError("Comment order", str(document.get("order")))
            taken = {r["replyId"] for r in other.get("replies", [])}
            for reply_id in reply_ids:
                if reply_id in taken:
                    raise DuplicateKeyError("Reply", reply_id)

    async def find_one(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> Optional[Comment]:
        """Find the first comment matching a filter."""
        found = self._select(filter, sort)
        return self._to_comment(found[0]) if found else None

    async def find_many(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> list[Comment]:
        """Find all comments matching a filter."""
        return [self._to_comment(d) for d in self._select(filter, sort)]

    async def insert(self, comment: Comment) -> Comment:
        """Insert a new comment."""
        if comment.comment_id in self._documents:
            raise DuplicateKeyError("Comment", comment.comment_id)
        document = comment.to_document()
        self._check_unique(document)
        self._documents[comment.comment_id] = deepcopy(document)
        return comment

    async def save(self, comment: Comment) -> Comment:
        """Replace a stored comment, checking its version."""
        stored = self._documents.get(comment.comment_id)
        if stored is None:
            raise NotFoundError("Comment", comment.comment_id)
        if stored.get("version", 0) != comment.version:
            raise ConflictError("Comment", comment.comment_id)

        saved = comment.model_copy(update={"version": comment.version + 1})
        document = saved.to_document()
        self._check_unique(document)
        self._documents[comment.comment_id] = deepcopy(document)
        return saved

    async def update_many(
        self, filter: Filter, values: Mapping[str, Any]
    ) -> UpdateResult:
        """Set fields on every comment matching a filter."""
        found = self._select(filter)
        for document in found:
            for path, value in values.items():
                set_path(document, path, deepcopy(value))
            document["version"] = document.get("version", 0) + 1
        return UpdateResult(matched_count=len(found), modified_count=len(found))

    async def delete_many(self, filter: Filter) -> DeleteResult:
        """Permanently delete every comment matching a filter."""
        found = self._select(filter)
        for document in found:
            del self._documents[document["commentId"]]
        return DeleteResult(deleted_count=len(found))

    async def add_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Add a voter to a reaction set."""
        document = self._documents.get(comment_id)
        if document is None:
            return UpdateResult()
        voters = document.setdefault("reactions", {}).setdefault(kind.value, [])
        if username not in voters:
            voters.append(username)
        document["version"] = document.get("version", 0) + 1
        return UpdateResult(matched_count=1, modified_count=1)

    async def remove_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Remove a voter from a reaction set."""
        document = self._documents.get(comment_id)
        if document is None:
            return UpdateResult()
        reactions = document.setdefault("reactions", {})
        reactions[kind.value] = [
            v for v in reactions.get(kind.value, []) if v != username
        ]
        document["version"] = document.get("version", 0) + 1
        return UpdateResult(matched_count=1, modified_count=1)

    async def next_sequence(self, name: str, floor: int = 0) -> int:
        """Draw the next counter value."""
        value = max(self._counters.get(name, 0), floor) + 1
        self._counters[name] = value
        return value
