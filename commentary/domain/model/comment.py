"""Comment aggregate.

A comment document owns its replies: every reply lives inside the
``replies`` list of exactly one comment, whatever its nesting depth. Nesting
is expressed through ``parent_reply_id`` rather than physical nesting, so the
list is flat and each reply points at its parent reply (or at nothing, for a
direct reply to the comment).

All reply mutations go through the comment, which is saved as a whole.
The methods here never mutate in place; they return a new comment.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from commentary.domain.error import NotFoundError
from commentary.domain.model.common import DomainModel
from commentary.domain.value import CommentId, CommentStatus, PostId, ReactionKind, ReplyId


class Reactions(DomainModel):
    """Reaction sets keyed by kind.

    Each set holds distinct voter identifiers in the order they reacted.
    """

    like: list[str] = Field(default_factory=list)
    dislike: list[str] = Field(default_factory=list)

    @field_validator("like", "dislike")
    @classmethod
    def deduplicate(cls, v: list[str]) -> list[str]:
        """Drop repeated voters, keeping first occurrence."""
        return list(dict.fromkeys(v))

    def voters(self, kind: ReactionKind) -> list[str]:
        return getattr(self, kind.value)

    def with_voter(self, kind: ReactionKind, username: str) -> "Reactions":
        if username in self.voters(kind):
            return self
        return self.model_copy(update={kind.value: [*self.voters(kind), username]})

    def without_voter(self, kind: ReactionKind, username: str) -> "Reactions":
        voters = [v for v in self.voters(kind) if v != username]
        return self.model_copy(update={kind.value: voters})


class ThreadEntry(DomainModel):
    """Fields shared by comments and replies."""

    content: str = Field(min_length=1)
    username: str = Field(min_length=1)
    order: int = Field(ge=1)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    deleted_at: Optional[datetime] = None  # Tracks soft deletion time
    status: CommentStatus = CommentStatus.ACTIVE
    reactions: Reactions = Field(default_factory=Reactions)
    replies_count: int = 0

    @property
    def is_deleted(self) -> bool:
        return self.status == CommentStatus.DELETED

    def soft_deleted(self, at: datetime):
        """Return a copy marked deleted at ``at``."""
        return self.model_copy(
            update={"status": CommentStatus.DELETED, "deleted_at": at}
        )


class Reply(ThreadEntry):
    """Reply entity, embedded in a comment.

    ``order`` is scoped to the reply's immediate parent: the comment itself
    when ``parent_reply_id`` is None, otherwise the parent reply.
    ``replies_count`` counts replies whose ``parent_reply_id`` is this reply.
    """

    reply_id: ReplyId = Field(min_length=1)
    parent_reply_id: Optional[ReplyId] = None
    is_direct_reply: bool = True


class Comment(ThreadEntry):
    """Comment entity and aggregate root for its replies.

    ``order`` is unique and strictly increasing across the collection.
    ``replies_count`` counts every reply attached to the comment, direct or
    nested. ``version`` is bumped on every write and checked on whole-document
    saves to detect concurrent modification.
    """

    comment_id: CommentId = Field(min_length=1)
    post_id: PostId = Field(min_length=1)
    replies: list[Reply] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    def find_reply(self, reply_id: ReplyId) -> Optional[Reply]:
        """Find a reply by ID anywhere in the thread."""
        return next((r for r in self.replies if r.reply_id == reply_id), None)

    def get_reply(self, reply_id: ReplyId) -> Reply:
        """Like find_reply, but raise NotFoundError when absent."""
        reply = self.find_reply(reply_id)
        if reply is None:
            raise NotFoundError("Reply", reply_id)
        return reply

    def with_reply(self, reply: Reply) -> "Comment":
        """Append a reply and bump the counters of its scope.

        The comment's count always increases. When the reply has a parent,
        the parent reply's count increases too.
        """
        replies = list(self.replies)
        if reply.parent_reply_id is not None:
            parent = self.get_reply(reply.parent_reply_id)
            index = replies.index(parent)
            replies[index] = parent.model_copy(
                update={"replies_count": parent.replies_count + 1}
            )
        replies.append(reply)
        return self.model_copy(
            update={"replies": replies, "replies_count": self.replies_count + 1}
        )

    def with_updated_reply(self, reply: Reply) -> "Comment":
        """Replace the reply carrying the same ID."""
        current = self.get_reply(reply.reply_id)
        replies = [reply if r is current else r for r in self.replies]
        return self.model_copy(update={"replies": replies})

    def without_reply(self, reply_id: ReplyId) -> "Comment":
        """Remove a reply from the list and decrement the comment's count.

        Only the comment's own count changes; the parent reply's count and
        the removed reply's children are left as they are.
        """
        current = self.get_reply(reply_id)
        replies = [r for r in self.replies if r is not current]
        return self.model_copy(
            update={"replies": replies, "replies_count": self.replies_count - 1}
        )

    def with_soft_deleted_reply(self, reply_id: ReplyId, at: datetime) -> "Comment":
        """Mark a reply deleted in place and decrement the comment's count."""
        current = self.get_reply(reply_id)
        replies = [r.soft_deleted(at) if r is current else r for r in self.replies]
        return self.model_copy(
            update={"replies": replies, "replies_count": self.replies_count - 1}
        )
