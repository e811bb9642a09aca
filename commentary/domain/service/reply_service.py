"""Reply domain service.

Replies are embedded in their comment. Every mutation loads the comment,
derives a new version of it through the aggregate methods on
:class:`Comment`, and saves the whole document back. Nothing is persisted
until that single save, and the save is rejected with ConflictError when
another writer saved the comment in between.
"""

from datetime import datetime
from typing import Any, Mapping

import logfire
from pydantic import ValidationError as PydanticValidationError

from commentary.domain.error import DuplicateKeyError, NotFoundError, ValidationError
from commentary.domain.model import Comment, DocumentSchema, Reply
from commentary.domain.repository import CommentRepository
from commentary.domain.value import CommentId, DeleteMode, ReactionKind, ReplyId

from .base import Service
from .deletion import resolve_delete_mode
from .ordering_service import OrderingService

# Stored reply fields that only the library itself may write
PROTECTED_REPLY_FIELDS = frozenset(
    {
        "replyId",
        "parentReplyId",
        "isDirectReply",
        "order",
        "createdAt",
        "repliesCount",
    }
)

# Fields a new reply always starts with; callers cannot seed them
RESERVED_REPLY_FIELDS = PROTECTED_REPLY_FIELDS | {
    "status",
    "reactions",
    "deletedAt",
    "updatedAt",
}


class ReplyService(Service):
    """Domain service for replies nested in a comment."""

    def __init__(
        self,
        comment_repository: CommentRepository,
        ordering_service: OrderingService,
        schema: DocumentSchema,
    ) -> None:
        """Initialize reply service.

        Args:
            comment_repository: Comment repository
            ordering_service: Ordering domain service
            schema: Models used to build reply entries
        """
        self.comment_repository = comment_repository
        self.ordering_service = ordering_service
        self.schema = schema

    async def create_reply(
        self,
        comment_id: CommentId,
        reply_id: ReplyId,
        content: str,
        username: str,
        parent_reply_id: ReplyId | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> Comment:
        """Add a reply to a comment, or to one of its replies.

        The reply's order is scoped to its parent. The comment's reply count
        goes up by one, and so does the parent reply's when there is one.

        Args:
            comment_id: Comment to reply in
            reply_id: Caller-supplied reply ID, unique in the collection
            content: Reply text
            username: Author identifier
            parent_reply_id: Reply being answered (None for a direct reply)
            extra: Additional fields defined by a custom schema

        Returns:
            The saved comment, including the new reply

        Raises:
            NotFoundError: If the comment or parent reply does not exist
            DuplicateKeyError: If the reply ID is already used anywhere
            ConflictError: If the comment changed while the reply was added
        """
        with logfire.span(
            "reply_service.create_reply",
            comment_id=comment_id,
            reply_id=reply_id,
            parent_reply_id=parent_reply_id,
            username=username,
        ):
            try:
                extra = self.schema.reply_model.document_keys(extra or {})
                reserved = RESERVED_REPLY_FIELDS.intersection(extra)
                if reserved:
                    raise ValidationError(
                        f"Cannot set managed reply fields: {sorted(reserved)}"
                    )

                comment = await self._load_comment(comment_id)

                owner = await self.comment_repository.find_one(
                    {"replies.replyId": reply_id}
                )
                if owner:
                    raise DuplicateKeyError("Reply", reply_id)

                order = self.ordering_service.next_reply_order(
                    comment, parent_reply_id
                )
                now = datetime.now()
                try:
                    reply = self.schema.reply_model.model_validate(
                        {
                            **extra,
                            "replyId": reply_id,
                            "parentReplyId": parent_reply_id,
                            "isDirectReply": parent_reply_id is None,
                            "order": order,
                            "content": content,
                            "username": username,
                            "createdAt": now,
                            "updatedAt": now,
                        }
                    )
                except PydanticValidationError as e:
                    raise ValidationError(str(e)) from e

                saved = await self.comment_repository.save(comment.with_reply(reply))
            except Exception as e:
                logfire.error(
                    "Error creating reply",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logfire.info(
                "Reply created",
                comment_id=comment_id,
                reply_id=reply_id,
                order=order,
                replies_count=saved.replies_count,
            )
            return saved

    async def get_replies(self, comment_id: CommentId) -> list[Reply]:
        """Get every reply of a comment, in insertion order.

        Raises:
            NotFoundError: If the comment does not exist
        """
        with logfire.span("reply_service.get_replies", comment_id=comment_id):
            try:
                comment = await self._load_comment(comment_id)
            except Exception as e:
                logfire.error(
                    "Error reading replies", comment_id=comment_id, error=str(e)
                )
                raise
            logfire.info(
                "Replies retrieved", comment_id=comment_id, count=len(comment.replies)
            )
            return comment.replies

    async def get_reply(self, comment_id: CommentId, reply_id: ReplyId) -> Reply | None:
        """Get a single reply of a comment.

        Returns:
            The reply, or None if the comment has no such reply

        Raises:
            NotFoundError: If the comment does not exist
        """
        with logfire.span(
            "reply_service.get_reply", comment_id=comment_id, reply_id=reply_id
        ):
            try:
                comment = await self._load_comment(comment_id)
            except Exception as e:
                logfire.error(
                    "Error reading reply",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    error=str(e),
                )
                raise
            reply = comment.find_reply(reply_id)
            if reply is None:
                logfire.warn("Reply not found", comment_id=comment_id, reply_id=reply_id)
            return reply

    async def update_reply(
        self, comment_id: CommentId, reply_id: ReplyId, values: Mapping[str, Any]
    ) -> Comment:
        """Overwrite fields of a reply.

        Supplied fields replace the current ones, others are left alone, and
        ``updatedAt`` is stamped with the current time.

        Returns:
            The saved comment

        Raises:
            NotFoundError: If the comment or reply does not exist
            ValidationError: If a protected field is targeted or a value is invalid
            ConflictError: If the comment changed while the reply was updated
        """
        with logfire.span(
            "reply_service.update_reply",
            comment_id=comment_id,
            reply_id=reply_id,
            fields=sorted(values),
        ):
            try:
                comment = await self._load_comment(comment_id)
                reply = comment.get_reply(reply_id)
                updated = self._merge(reply, values)
                saved = await self.comment_repository.save(
                    comment.with_updated_reply(updated)
                )
            except Exception as e:
                logfire.error(
                    "Error updating reply",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logfire.info("Reply updated", comment_id=comment_id, reply_id=reply_id)
            return saved

    async def delete_reply(
        self, comment_id: CommentId, reply_id: ReplyId, strict: bool = False
    ) -> Comment:
        """Delete a reply.

        A strict delete removes the entry from the list; otherwise it stays
        and is marked deleted. Either way the comment's reply count drops by
        exactly one. Parent reply counts and the reply's own children are not
        touched.

        Returns:
            The saved comment

        Raises:
            NotFoundError: If the comment or reply does not exist
            ConflictError: If the comment changed while the reply was deleted
        """
        mode = resolve_delete_mode(strict)
        with logfire.span(
            "reply_service.delete_reply",
            comment_id=comment_id,
            reply_id=reply_id,
            mode=mode.value,
        ):
            try:
                comment = await self._load_comment(comment_id)
                if mode == DeleteMode.STRICT:
                    changed = comment.without_reply(reply_id)
                else:
                    changed = comment.with_soft_deleted_reply(reply_id, datetime.now())
                saved = await self.comment_repository.save(changed)
            except Exception as e:
                logfire.error(
                    "Error deleting reply",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    mode=mode.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            logfire.info(
                "Reply deleted",
                comment_id=comment_id,
                reply_id=reply_id,
                mode=mode.value,
                replies_count=saved.replies_count,
            )
            return saved

    async def add_reaction(
        self,
        comment_id: CommentId,
        reply_id: ReplyId,
        kind: ReactionKind,
        username: str,
    ) -> Comment:
        """Add a user's reaction to a reply.

        Raises:
            NotFoundError: If the comment or reply does not exist
        """
        with logfire.span(
            "reply_service.add_reaction",
            comment_id=comment_id,
            reply_id=reply_id,
            kind=kind.value,
        ):
            try:
                comment = await self._load_comment(comment_id)
                reply = comment.get_reply(reply_id)
                reacted = reply.model_copy(
                    update={"reactions": reply.reactions.with_voter(kind, username)}
                )
                saved = await self.comment_repository.save(
                    comment.with_updated_reply(reacted)
                )
            except Exception as e:
                logfire.error(
                    "Error adding reply reaction",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            logfire.info("Reply reaction added", reply_id=reply_id, kind=kind.value)
            return saved

    async def remove_reaction(
        self,
        comment_id: CommentId,
        reply_id: ReplyId,
        kind: ReactionKind,
        username: str,
    ) -> Comment:
        """Remove a user's reaction from a reply.

        Raises:
            NotFoundError: If the comment or reply does not exist
        """
        with logfire.span(
            "reply_service.remove_reaction",
            comment_id=comment_id,
            reply_id=reply_id,
            kind=kind.value,
        ):
            try:
                comment = await self._load_comment(comment_id)
                reply = comment.get_reply(reply_id)
                unreacted = reply.model_copy(
                    update={"reactions": reply.reactions.without_voter(kind, username)}
                )
                saved = await self.comment_repository.save(
                    comment.with_updated_reply(unreacted)
                )
            except Exception as e:
                logfire.error(
                    "Error removing reply reaction",
                    comment_id=comment_id,
                    reply_id=reply_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            logfire.info("Reply reaction removed", reply_id=reply_id, kind=kind.value)
            return saved

    async def _load_comment(self, comment_id: CommentId) -> Comment:
        comment = await self.comment_repository.find_one({"commentId": comment_id})
        if comment is None:
            logfire.warn("Comment not found", comment_id=comment_id)
            raise NotFoundError("Comment", comment_id)
        return comment

    def _merge(self, reply: Reply, values: Mapping[str, Any]) -> Reply:
        """Build the updated reply from the current one and new values."""
        changes = type(reply).document_keys(values)
        protected = PROTECTED_REPLY_FIELDS.intersection(changes)
        if protected:
            raise ValidationError(
                f"Cannot update protected reply fields: {sorted(protected)}"
            )
        try:
            return type(reply).model_validate(
                {**reply.to_document(), **changes, "updatedAt": datetime.now()}
            )
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
