"""MongoDB repository implementations."""

from commentary.persistence.repository.comment import MongoCommentRepository

__all__ = [
    "MongoCommentRepository",
]
