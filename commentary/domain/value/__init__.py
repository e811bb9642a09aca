"""Domain value objects for comment threads."""

from commentary.domain.value.identifiers import CommentId, PostId, ReplyId
from commentary.domain.value.types import (
    CommentStatus,
    DeleteMode,
    DeleteResult,
    ReactionKind,
    SortOrder,
    UpdateResult,
)

__all__ = [
    # Identifiers
    "CommentId",
    "ReplyId",
    "PostId",
    # Types
    "CommentStatus",
    "ReactionKind",
    "DeleteMode",
    "SortOrder",
    "UpdateResult",
    "DeleteResult",
]
