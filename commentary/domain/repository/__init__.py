"""Repository interfaces for the comment domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from commentary.domain.repository.comment import CommentRepository, Filter, Sort

__all__ = [
    "CommentRepository",
    "Filter",
    "Sort",
]
