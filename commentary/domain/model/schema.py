"""Document schema selection.

Callers that store extra fields on comments or replies subclass
:class:`Comment` / :class:`Reply` and pass the subclasses here. Repositories
parse stored documents with ``comment_model`` and services build new replies
with ``reply_model``.

    class ReviewReply(Reply):
        rating: int = 0

    class ReviewComment(Comment):
        rating: int = 0
        replies: list[ReviewReply] = []

    schema = DocumentSchema(comment_model=ReviewComment, reply_model=ReviewReply)
"""

from pydantic import model_validator

from commentary.domain.model.comment import Comment, Reply
from commentary.domain.value.common import ValueObject


class DocumentSchema(ValueObject):
    """Models used to read and build comment documents."""

    comment_model: type[Comment] = Comment
    reply_model: type[Reply] = Reply

    @model_validator(mode="after")
    def check_reply_model_fits(self) -> "DocumentSchema":
        """Replies built with reply_model must be accepted by comment_model."""
        annotation = self.comment_model.model_fields["replies"].annotation
        accepted = getattr(annotation, "__args__", (Reply,))[0]
        if not issubclass(self.reply_model, accepted):
            raise ValueError(
                f"{self.reply_model.__name__} is not accepted by "
                f"{self.comment_model.__name__}.replies"
            )
        return self
