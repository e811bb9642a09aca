"""Domain layer DI providers."""

from dishka import Scope, provide

from commentary.domain.model import DocumentSchema
from commentary.domain.repository import CommentRepository
from commentary.domain.service import CommentService, OrderingService, ReplyService
from commentary.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped: each library call gets fresh
    service instances.
    """

    scope = Scope.REQUEST

    @provide
    def get_ordering_service(
        self, comment_repository: CommentRepository
    ) -> OrderingService:
        """Provide ordering domain service."""
        return OrderingService(comment_repository=comment_repository)

    @provide
    def get_comment_service(
        self,
        comment_repository: CommentRepository,
        ordering_service: OrderingService,
        schema: DocumentSchema,
    ) -> CommentService:
        """Provide comment domain service."""
        return CommentService(
            comment_repository=comment_repository,
            ordering_service=ordering_service,
            schema=schema,
        )

    @provide
    def get_reply_service(
        self,
        comment_repository: CommentRepository,
        ordering_service: OrderingService,
        schema: DocumentSchema,
    ) -> ReplyService:
        """Provide reply domain service."""
        return ReplyService(
            comment_repository=comment_repository,
            ordering_service=ordering_service,
            schema=schema,
        )
