"""Ordering domain service.

Comments are numbered across the whole collection; replies are numbered
within their immediate parent (the comment itself, or a parent reply).
"""

import logfire

from commentary.domain.model.comment import Comment
from commentary.domain.repository import CommentRepository
from commentary.domain.value import ReplyId, SortOrder

from .base import Service

# Name of the counter that hands out comment order values
COMMENT_ORDER_SEQUENCE = "order"


class OrderingService(Service):
    """Domain service computing order values for new comments and replies."""

    def __init__(self, comment_repository: CommentRepository) -> None:
        """Initialize ordering service.

        Args:
            comment_repository: Comment repository
        """
        self.comment_repository = comment_repository

    async def next_comment_order(self) -> int:
        """Get the order value for the next comment in the collection.

        The highest stored order is used as a floor for an atomic counter,
        so the result is always above every existing order and two
        concurrent callers never get the same value.

        Returns:
            Next order value (1 for an empty collection)
        """
        with logfire.span("ordering_service.next_comment_order"):
            latest = await self.comment_repository.find_one(
                {}, sort=[("order", SortOrder.DESCENDING)]
            )
            floor = latest.order if latest else 0
            order = await self.comment_repository.next_sequence(
                COMMENT_ORDER_SEQUENCE, floor=floor
            )
            logfire.info("Comment order assigned", order=order, floor=floor)
            return order

    def next_reply_order(
        self, comment: Comment, parent_reply_id: ReplyId | None = None
    ) -> int:
        """Get the order value for the next reply in a scope.

        Args:
            comment: Comment the reply is added to
            parent_reply_id: Parent reply ID (None for a direct reply)

        Returns:
            ``replies_count + 1`` of the comment, or of the parent reply

        Raises:
            NotFoundError: If the parent reply is not in the comment
        """
        if parent_reply_id is None:
            return comment.replies_count + 1
        parent = comment.get_reply(parent_reply_id)
        return parent.replies_count + 1
