"""Comment manager: the library entry point.

    manager = CommentManager.create()
    async with manager:
        await manager.comments.create(
            {"commentId": "c1", "postId": "p1", "content": "hello", "username": "u1"}
        )
        await manager.replies.create(
            {"commentId": "c1", "replyId": "r1", "content": "hi", "username": "u2"}
        )
        thread = await manager.comments.read({"postId": "p1"})

Each call validates its payload, opens a request scope on the DI container
and delegates to the domain services.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

from dishka import AsyncContainer

from commentary.config import Settings
from commentary.domain.model import Comment, DocumentSchema, Reply
from commentary.domain.repository import CommentRepository
from commentary.domain.service import CommentService, ReplyService
from commentary.domain.value import DeleteResult, UpdateResult
from commentary.interface.schema import (
    CommentTarget,
    CreateCommentRequest,
    CreateReplyRequest,
    DeleteRequest,
    ReactionRequest,
    ReplyQuery,
    ReplyTarget,
    UpdateCommentRequest,
    UpdateReplyRequest,
    parse,
)
from commentary.util.di.container import create_container
from commentary.util.logging import setup_logging
from commentary.util.observability import configure_logfire

Data = Optional[Mapping[str, Any]]


class CommentOperations:
    """Create, read, update and delete top-level comments."""

    def __init__(self, container: AsyncContainer) -> None:
        self.container = container

    @asynccontextmanager
    async def _service(self) -> AsyncIterator[CommentService]:
        async with self.container() as request_container:
            yield await request_container.get(CommentService)

    async def create(self, data: Data) -> Comment:
        """Create a comment.

        ``data`` needs ``commentId``, ``postId``, ``content`` and
        ``username``. The order is assigned automatically.

        Raises:
            ValidationError: If a required field is missing
            DuplicateKeyError: If the comment ID is already taken
        """
        request = parse(CreateCommentRequest, data)
        async with self._service() as service:
            return await service.create_comment(
                comment_id=request.comment_id,
                post_id=request.post_id,
                content=request.content,
                username=request.username,
                extra=request.extra,
            )

    async def read(self, criteria: Data) -> list[Comment]:
        """All comments matching ``criteria``, sorted by order."""
        async with self._service() as service:
            return await service.get_comments(dict(criteria or {}))

    async def update(self, data: Data, criteria: Data) -> UpdateResult:
        """Overwrite fields on every comment matching ``criteria``."""
        request = parse(UpdateCommentRequest, data)
        async with self._service() as service:
            return await service.update_comments(dict(criteria or {}), request.changes())

    async def delete(self, data: Data, criteria: Data) -> UpdateResult | DeleteResult:
        """Delete every comment matching ``criteria``.

        ``{"strict": True}`` removes the documents; otherwise they are
        marked deleted.
        """
        request = parse(DeleteRequest, data)
        async with self._service() as service:
            return await service.delete_comments(
                dict(criteria or {}), strict=request.strict
            )

    async def react(self, data: Data, criteria: Data) -> UpdateResult:
        """Add ``data["username"]`` to the ``data["kind"]`` reaction set."""
        request = parse(ReactionRequest, data)
        target = parse(CommentTarget, criteria)
        async with self._service() as service:
            return await service.add_reaction(
                target.comment_id, request.kind, request.username
            )

    async def unreact(self, data: Data, criteria: Data) -> UpdateResult:
        """Remove ``data["username"]`` from the ``data["kind"]`` reaction set."""
        request = parse(ReactionRequest, data)
        target = parse(CommentTarget, criteria)
        async with self._service() as service:
            return await service.remove_reaction(
                target.comment_id, request.kind, request.username
            )


class ReplyOperations:
    """Create, read, update and delete replies inside a comment."""

    def __init__(self, container: AsyncContainer) -> None:
        self.container = container

    @asynccontextmanager
    async def _service(self) -> AsyncIterator[ReplyService]:
        async with self.container() as request_container:
            yield await request_container.get(ReplyService)

    async def create(self, data: Data) -> Comment:
        """Add a reply to a comment, or to a reply when ``parentReplyId`` is set.

        Returns:
            The saved comment, including the new reply
        """
        request = parse(CreateReplyRequest, data)
        async with self._service() as service:
            return await service.create_reply(
                comment_id=request.comment_id,
                reply_id=request.reply_id,
                content=request.content,
                username=request.username,
                parent_reply_id=request.parent_reply_id,
                extra=request.extra,
            )

    async def read(self, criteria: Data) -> Reply | list[Reply] | None:
        """One reply when ``replyId`` is given (None if absent), else all of them."""
        query = parse(ReplyQuery, criteria)
        async with self._service() as service:
            if query.reply_id is not None:
                return await service.get_reply(query.comment_id, query.reply_id)
            return await service.get_replies(query.comment_id)

    async def update(self, data: Data, criteria: Data) -> Comment:
        """Overwrite fields of the reply addressed by ``criteria``."""
        request = parse(UpdateReplyRequest, data)
        target = parse(ReplyTarget, criteria)
        async with self._service() as service:
            return await service.update_reply(
                target.comment_id, target.reply_id, request.changes()
            )

    async def delete(self, data: Data, criteria: Data) -> Comment:
        """Delete the reply addressed by ``criteria``."""
        request = parse(DeleteRequest, data)
        target = parse(ReplyTarget, criteria)
        async with self._service() as service:
            return await service.delete_reply(
                target.comment_id, target.reply_id, strict=request.strict
            )

    async def react(self, data: Data, criteria: Data) -> Comment:
        """Add a reaction to the reply addressed by ``criteria``."""
        request = parse(ReactionRequest, data)
        target = parse(ReplyTarget, criteria)
        async with self._service() as service:
            return await service.add_reaction(
                target.comment_id, target.reply_id, request.kind, request.username
            )

    async def unreact(self, data: Data, criteria: Data) -> Comment:
        """Remove a reaction from the reply addressed by ``criteria``."""
        request = parse(ReactionRequest, data)
        target = parse(ReplyTarget, criteria)
        async with self._service() as service:
            return await service.remove_reaction(
                target.comment_id, target.reply_id, request.kind, request.username
            )


class CommentManager:
    """Threaded comment store backed by an injected container."""

    def __init__(self, container: AsyncContainer) -> None:
        """Wrap a configured container.

        Args:
            container: DI container providing the domain services
        """
        self.container = container
        self.comments = CommentOperations(container)
        self.replies = ReplyOperations(container)

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        schema: DocumentSchema | None = None,
        configure_observability: bool = False,
    ) -> "CommentManager":
        """Build a manager backed by MongoDB.

        No connection is made until connect() or the first operation.
        Logging and Logfire belong to the host application and are left
        alone unless ``configure_observability`` is set.

        Args:
            settings: Library settings (loaded from the environment if omitted)
            schema: Custom document models (default Comment/Reply if omitted)
            configure_observability: Set up root logging and Logfire from
                ``settings``, for hosts that do not configure them
        """
        settings = settings or Settings()
        if configure_observability:
            setup_logging(settings)
            configure_logfire(settings)
        return cls(create_container(settings, schema))

    async def connect(self) -> None:
        """Open the storage connection.

        Raises:
            StorageConnectionError: If the storage backend cannot be reached
        """
        await self.container.get(CommentRepository)

    async def close(self) -> None:
        """Close the storage connection."""
        await self.container.close()

    async def __aenter__(self) -> "CommentManager":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
