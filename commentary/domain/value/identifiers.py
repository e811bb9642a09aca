"""Strongly typed identifiers for comment thread entities.

Identifiers are supplied by the caller (they usually come from the system
that owns posts and users), so they wrap plain strings rather than UUIDs.
"""

from typing import NewType

CommentId = NewType("CommentId", str)
ReplyId = NewType("ReplyId", str)
PostId = NewType("PostId", str)
