"""Domain model entities for comment threads."""

from commentary.domain.model.comment import Comment, Reactions, Reply, ThreadEntry
from commentary.domain.model.schema import DocumentSchema

__all__ = [
    "Comment",
    "Reply",
    "Reactions",
    "ThreadEntry",
    "DocumentSchema",
]
