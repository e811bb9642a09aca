"""Test configuration and fixtures."""

from datetime import datetime

import logfire

from commentary.domain.model import Comment, Reply
from commentary.domain.value import CommentId, PostId, ReplyId


def pytest_configure(config):
    """Keep telemetry local and silent during tests."""
    logfire.configure(send_to_logfire=False, console=False)


def make_comment(
    comment_id: str = "c1",
    order: int = 1,
    post_id: str = "p1",
    content: str = "hello",
    username: str = "u1",
    **fields,
) -> Comment:
    """Helper function to build a comment with sensible defaults.

    Args:
        comment_id: Comment ID
        order: Order value
        post_id: Post ID
        content: Comment text
        username: Author
        **fields: Any other Comment field, by Python name

    Returns:
        Comment ready to insert
    """
    now = datetime.now()
    return Comment(
        comment_id=CommentId(comment_id),
        post_id=PostId(post_id),
        content=content,
        username=username,
        order=order,
        created_at=now,
        updated_at=now,
        **fields,
    )


def make_reply(
    reply_id: str = "r1",
    order: int = 1,
    parent_reply_id: str | None = None,
    content: str = "hi",
    username: str = "u2",
    **fields,
) -> Reply:
    """Helper function to build a reply with sensible defaults."""
    now = datetime.now()
    return Reply(
        reply_id=ReplyId(reply_id),
        parent_reply_id=ReplyId(parent_reply_id) if parent_reply_id else None,
        is_direct_reply=parent_reply_id is None,
        content=content,
        username=username,
        order=order,
        created_at=now,
        updated_at=now,
        **fields,
    )
