"""Request payloads accepted by the comment manager.

Payloads are plain mappings. Keys may be camelCase (as stored) or
snake_case. Fields beyond the ones declared here are passed through, so
callers using an extended document schema can set their own fields.
"""

from datetime import datetime
from typing import Any, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from commentary.domain.error import ValidationError
from commentary.domain.model import Reactions
from commentary.domain.value import CommentStatus, ReactionKind


class Payload(BaseModel):
    """Base class for request payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    @property
    def extra(self) -> dict[str, Any]:
        """Undeclared fields supplied by the caller."""
        return dict(self.model_extra or {})

    def changes(self) -> dict[str, Any]:
        """Supplied fields only, keyed by stored name."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class StrictPayload(Payload):
    """Payload that ignores undeclared fields."""

    model_config = ConfigDict(extra="ignore")


class CreateCommentRequest(Payload):
    """Create comment request."""

    comment_id: str = Field(min_length=1)
    post_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    username: str = Field(min_length=1)


class UpdateCommentRequest(Payload):
    """Comment fields to overwrite."""

    post_id: Optional[str] = None
    content: Optional[str] = Field(default=None, min_length=1)
    username: Optional[str] = Field(default=None, min_length=1)
    status: Optional[CommentStatus] = None
    reactions: Optional[Reactions] = None
    deleted_at: Optional[datetime] = None


class CommentTarget(StrictPayload):
    """Criteria addressing a single comment."""

    comment_id: str = Field(min_length=1)


class DeleteRequest(StrictPayload):
    """Delete options."""

    strict: bool = False


class ReactionRequest(StrictPayload):
    """Reaction to add or remove."""

    kind: ReactionKind
    username: str = Field(min_length=1)


class CreateReplyRequest(Payload):
    """Create reply request."""

    comment_id: str = Field(min_length=1)
    reply_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    username: str = Field(min_length=1)
    parent_reply_id: Optional[str] = None


class ReplyQuery(StrictPayload):
    """Reply lookup criteria; without reply_id the whole list is meant."""

    comment_id: str = Field(min_length=1)
    reply_id: Optional[str] = None


class ReplyTarget(StrictPayload):
    """Criteria addressing a single reply."""

    comment_id: str = Field(min_length=1)
    reply_id: str = Field(min_length=1)


class UpdateReplyRequest(Payload):
    """Reply fields to overwrite."""

    content: Optional[str] = Field(default=None, min_length=1)
    username: Optional[str] = Field(default=None, min_length=1)
    status: Optional[CommentStatus] = None
    reactions: Optional[Reactions] = None
    deleted_at: Optional[datetime] = None


P = TypeVar("P", bound=Payload)


def parse(model: type[P], data: Optional[Mapping[str, Any]]) -> P:
    """Validate a caller payload.

    Raises:
        ValidationError: If required fields are missing or values are invalid
    """
    try:
        return model.model_validate(dict(data or {}))
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e
