"""Comment repository interface."""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from commentary.domain.model.comment import Comment
from commentary.domain.value import (
    CommentId,
    DeleteResult,
    ReactionKind,
    SortOrder,
    UpdateResult,
)

Filter = Mapping[str, Any]
Sort = Sequence[tuple[str, SortOrder]]


class CommentRepository(ABC):
    """Repository for Comment documents.

    Defines the contract for comment persistence operations.
    Implementations live in the persistence layer.

    Filters are MongoDB-style mappings keyed by stored (camelCase) field
    names. Dotted paths reach into subdocuments and arrays, e.g.
    ``{"replies.replyId": "r1"}`` matches the comment holding reply ``r1``.

    Every write bumps the document's ``version``.
    """

    @abstractmethod
    async def find_one(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> Optional[Comment]:
        """Find the first comment matching a filter.

        Args:
            filter: Match criteria
            sort: Optional sort applied before picking the first match

        Returns:
            The comment if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_many(
        self, filter: Filter, sort: Optional[Sort] = None
    ) -> list[Comment]:
        """Find all comments matching a filter.

        Args:
            filter: Match criteria
            sort: Optional sort

        Returns:
            Matching comments, possibly empty
        """
        pass

    @abstractmethod
    async def insert(self, comment: Comment) -> Comment:
        """Insert a new comment.

        Raises:
            DuplicateKeyError: If the comment ID is already taken
        """
        pass

    @abstractmethod
    async def save(self, comment: Comment) -> Comment:
        """Replace a stored comment with ``comment`` as a whole document.

        The stored version must equal ``comment.version``; the saved copy
        carries the next version.

        Returns:
            The saved comment

        Raises:
            NotFoundError: If the comment no longer exists
            ConflictError: If the stored version moved on since it was read
        """
        pass

    @abstractmethod
    async def update_many(
        self, filter: Filter, values: Mapping[str, Any]
    ) -> UpdateResult:
        """Set fields on every comment matching a filter.

        Args:
            filter: Match criteria
            values: Stored field names (dotted paths allowed) to new values

        Returns:
            Matched and modified counts
        """
        pass

    @abstractmethod
    async def delete_many(self, filter: Filter) -> DeleteResult:
        """Permanently delete every comment matching a filter."""
        pass

    @abstractmethod
    async def add_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Atomically add a voter to a comment's reaction set.

        Adding a voter already present leaves the set unchanged.
        """
        pass

    @abstractmethod
    async def remove_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Atomically remove a voter from a comment's reaction set."""
        pass

    @abstractmethod
    async def next_sequence(self, name: str, floor: int = 0) -> int:
        """Atomically draw the next value of a named counter.

        The returned value is ``max(current, floor) + 1`` and becomes the
        counter's new current value. Concurrent callers never receive the
        same value.
        """
        pass
