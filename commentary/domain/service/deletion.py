"""Deletion policy shared by comments and replies.

A strict delete removes the record for good. Anything else is a soft
delete: the record stays, its status becomes ``deleted`` and ``deletedAt``
records when that happened.
"""

from datetime import datetime
from typing import Any

from commentary.domain.value import CommentStatus, DeleteMode


def resolve_delete_mode(strict: bool) -> DeleteMode:
    """Pick the delete mode for a request's ``strict`` flag."""
    return DeleteMode.STRICT if strict else DeleteMode.SOFT


def soft_delete_values(at: datetime) -> dict[str, Any]:
    """Stored field values that mark a document soft-deleted."""
    return {"status": CommentStatus.DELETED.value, "deletedAt": at}
