"""Comment domain service."""

from datetime import datetime
from typing import Any, Mapping

import logfire
from pydantic import ValidationError as PydanticValidationError

from commentary.domain.error import DuplicateKeyError, NotFoundError, ValidationError
from commentary.domain.model import Comment, DocumentSchema
from commentary.domain.repository import CommentRepository, Filter
from commentary.domain.value import (
    CommentId,
    DeleteMode,
    DeleteResult,
    PostId,
    ReactionKind,
    SortOrder,
    UpdateResult,
)

from .base import Service
from .deletion import resolve_delete_mode, soft_delete_values
from .ordering_service import OrderingService

# Stored fields that only the library itself may write
PROTECTED_COMMENT_FIELDS = frozenset(
    {"commentId", "order", "createdAt", "replies", "repliesCount", "version"}
)

# Fields a new comment always starts with; callers cannot seed them
RESERVED_COMMENT_FIELDS = PROTECTED_COMMENT_FIELDS | {
    "status",
    "reactions",
    "deletedAt",
    "updatedAt",
}


class CommentService(Service):
    """Domain service for top-level comment operations."""

    def __init__(
        self,
        comment_repository: CommentRepository,
        ordering_service: OrderingService,
        schema: DocumentSchema,
    ) -> None:
        """Initialize comment service.

        Args:
            comment_repository: Comment repository
            ordering_service: Ordering domain service
            schema: Models used to build comment documents
        """
        self.comment_repository = comment_repository
        self.ordering_service = ordering_service
        self.schema = schema

    async def create_comment(
        self,
        comment_id: CommentId,
        post_id: PostId,
        content: str,
        username: str,
        extra: Mapping[str, Any] | None = None,
    ) -> Comment:
        """Create a comment on a post.

        Args:
            comment_id: Caller-supplied comment ID, unique in the collection
            post_id: Post ID
            content: Comment text
            username: Author identifier
            extra: Additional fields defined by a custom schema

        Returns:
            Created comment, with its order assigned

        Raises:
            DuplicateKeyError: If the comment ID is already taken
            ValidationError: If the fields do not form a valid comment
        """
        with logfire.span(
            "comment_service.create_comment",
            comment_id=comment_id,
            post_id=post_id,
            username=username,
        ):
            try:
                extra = self.schema.comment_model.document_keys(extra or {})
                reserved = RESERVED_COMMENT_FIELDS.intersection(extra)
                if reserved:
                    raise ValidationError(
                        f"Cannot set managed comment fields: {sorted(reserved)}"
                    )

                existing = await self.comment_repository.find_one(
                    {"commentId": comment_id}
                )
                if existing:
                    raise DuplicateKeyError("Comment", comment_id)

                order = await self.ordering_service.next_comment_order()
                now = datetime.now()
                try:
                    comment = self.schema.comment_model.model_validate(
                        {
                            **extra,
                            "commentId": comment_id,
                            "postId": post_id,
                            "content": content,
                            "username": username,
                            "order": order,
                            "createdAt": now,
                            "updatedAt": now,
                        }
                    )
                except PydanticValidationError as e:
                    raise ValidationError(str(e)) from e

                saved = await self.comment_repository.insert(comment)
            except Exception as e:
                logfire.error(
                    "Error creating comment",
                    comment_id=comment_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logfire.info(
                "Comment created",
                comment_id=saved.comment_id,
                post_id=saved.post_id,
                order=saved.order,
            )
            return saved

    async def get_comments(self, filter: Filter) -> list[Comment]:
        """Get all comments matching a filter, in order.

        Args:
            filter: Match criteria on stored field names

        Returns:
            Matching comments sorted ascending by order
        """
        with logfire.span("comment_service.get_comments", filter=dict(filter)):
            try:
                comments = await self.comment_repository.find_many(
                    filter, sort=[("order", SortOrder.ASCENDING)]
                )
            except Exception as e:
                logfire.error("Error reading comments", error=str(e))
                raise
            logfire.info("Comments retrieved", count=len(comments))
            return comments

    async def get_comment_by_id(self, comment_id: CommentId) -> Comment | None:
        """Get a comment by ID.

        Args:
            comment_id: Comment ID

        Returns:
            Comment if found, None otherwise
        """
        with logfire.span("comment_service.get_comment_by_id", comment_id=comment_id):
            try:
                comment = await self.comment_repository.find_one(
                    {"commentId": comment_id}
                )
            except Exception as e:
                logfire.error(
                    "Error reading comment", comment_id=comment_id, error=str(e)
                )
                raise
            if comment:
                logfire.info("Comment found", comment_id=comment_id)
            else:
                logfire.warn("Comment not found", comment_id=comment_id)
            return comment

    async def update_comments(
        self, filter: Filter, values: Mapping[str, Any]
    ) -> UpdateResult:
        """Set fields on every comment matching a filter.

        ``updatedAt`` is always stamped with the current time, whatever the
        caller supplied. The filter may match any number of comments.

        Args:
            filter: Match criteria on stored field names
            values: Fields to set

        Returns:
            Matched and modified counts

        Raises:
            ValidationError: If a protected field is targeted or a value does
                not fit the comment model
        """
        with logfire.span("comment_service.update_comments", filter=dict(filter)):
            try:
                changes = self._normalize_changes(values)
                changes["updatedAt"] = datetime.now()
                result = await self.comment_repository.update_many(filter, changes)
            except Exception as e:
                logfire.error("Error updating comments", error=str(e))
                raise

            logfire.info(
                "Comments updated",
                matched=result.matched_count,
                modified=result.modified_count,
            )
            return result

    async def delete_comments(
        self, filter: Filter, strict: bool = False
    ) -> UpdateResult | DeleteResult:
        """Delete every comment matching a filter.

        A strict delete removes the documents. Otherwise they are marked
        deleted and keep their replies untouched.

        Args:
            filter: Match criteria on stored field names
            strict: Remove the documents permanently

        Returns:
            DeleteResult for strict deletes, UpdateResult for soft deletes
        """
        mode = resolve_delete_mode(strict)
        with logfire.span(
            "comment_service.delete_comments", filter=dict(filter), mode=mode.value
        ):
            try:
                if mode == DeleteMode.STRICT:
                    result = await self.comment_repository.delete_many(filter)
                else:
                    result = await self.comment_repository.update_many(
                        filter, soft_delete_values(datetime.now())
                    )
            except Exception as e:
                logfire.error("Error deleting comments", mode=mode.value, error=str(e))
                raise

            logfire.info("Comments deleted", mode=mode.value, result=result.model_dump())
            return result

    async def add_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Add a user's reaction to a comment.

        Reacting twice with the same kind keeps a single entry.

        Raises:
            NotFoundError: If the comment does not exist
        """
        with logfire.span(
            "comment_service.add_reaction",
            comment_id=comment_id,
            kind=kind.value,
            username=username,
        ):
            result = await self.comment_repository.add_reaction(
                comment_id, kind, username
            )
            if result.matched_count == 0:
                logfire.warn("Reaction on non-existent comment", comment_id=comment_id)
                raise NotFoundError("Comment", comment_id)
            logfire.info("Reaction added", comment_id=comment_id, kind=kind.value)
            return result

    async def remove_reaction(
        self, comment_id: CommentId, kind: ReactionKind, username: str
    ) -> UpdateResult:
        """Remove a user's reaction from a comment.

        Raises:
            NotFoundError: If the comment does not exist
        """
        with logfire.span(
            "comment_service.remove_reaction",
            comment_id=comment_id,
            kind=kind.value,
            username=username,
        ):
            result = await self.comment_repository.remove_reaction(
                comment_id, kind, username
            )
            if result.matched_count == 0:
                logfire.warn("Reaction on non-existent comment", comment_id=comment_id)
                raise NotFoundError("Comment", comment_id)
            logfire.info("Reaction removed", comment_id=comment_id, kind=kind.value)
            return result

    def _normalize_changes(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Map keys to stored names, reject protected fields, check values.

        Values are checked against the comment model so that an update can
        never store a document that no longer parses.
        """
        changes = self.schema.comment_model.document_keys(values)
        protected = {
            key
            for key in changes
            if key.split(".", 1)[0] in PROTECTED_COMMENT_FIELDS
        }
        if protected:
            raise ValidationError(
                f"Cannot update protected comment fields: {sorted(protected)}"
            )
        return self.schema.comment_model.validate_changes(changes)
