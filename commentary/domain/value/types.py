"""Domain value objects for comment threads.

Value objects are immutable and defined by their values, not identity.
"""

from enum import Enum, IntEnum

from pydantic import Field

from commentary.domain.value.common import ValueObject


class CommentStatus(str, Enum):
    """Lifecycle status shared by comments and replies."""

    ACTIVE = "active"
    DELETED = "deleted"
    FLAGGED = "flagged"


class ReactionKind(str, Enum):
    """Kinds of reaction a user can leave."""

    LIKE = "like"
    DISLIKE = "dislike"


class DeleteMode(str, Enum):
    """How a delete request is applied.

    STRICT removes the record permanently. SOFT keeps it and marks it deleted.
    """

    STRICT = "strict"
    SOFT = "soft"


class SortOrder(IntEnum):
    """Sort direction, numerically compatible with MongoDB sort specs."""

    ASCENDING = 1
    DESCENDING = -1


class UpdateResult(ValueObject):
    """Outcome of a batch update."""

    matched_count: int = Field(default=0, ge=0)
    modified_count: int = Field(default=0, ge=0)


class DeleteResult(ValueObject):
    """Outcome of a batch delete."""

    deleted_count: int = Field(default=0, ge=0)
