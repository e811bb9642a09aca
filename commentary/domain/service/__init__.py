"""Domain services."""

from .base import Service
from .comment_service import CommentService
from .ordering_service import OrderingService
from .reply_service import ReplyService

__all__ = [
    "CommentService",
    "OrderingService",
    "ReplyService",
    "Service",
]
