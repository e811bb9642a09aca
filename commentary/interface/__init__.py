"""Library interface for comment threads."""

from commentary.interface.manager import CommentManager, CommentOperations, ReplyOperations

__all__ = [
    "CommentManager",
    "CommentOperations",
    "ReplyOperations",
]
