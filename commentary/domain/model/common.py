"""Base model for all domain entities."""

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from commentary.domain.error import ValidationError


class DomainModel(BaseModel):
    """Base class for all domain models.

    Models are immutable. Attributes are snake_case in Python and camelCase
    in stored documents (``comment_id`` <-> ``commentId``); either spelling is
    accepted on input. Unknown fields are kept so that documents written with
    a caller-extended schema survive a read/save cycle.
    """

    model_config = ConfigDict(
        frozen=True,  # All domain models are immutable
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> dict:
        """Dump to the stored (camelCase) document shape."""
        return self.model_dump(by_alias=True, mode="python")

    @classmethod
    def document_key(cls, key: str) -> str:
        """Map a Python attribute name to its stored name.

        Stored names, dotted paths and unknown keys pass through unchanged.
        """
        field = cls.model_fields.get(key)
        if field is not None and field.alias:
            return field.alias
        return key

    @classmethod
    def document_keys(cls, values: Mapping[str, Any]) -> dict[str, Any]:
        """Re-key a mapping by stored names."""
        return {cls.document_key(key): value for key, value in values.items()}

    @classmethod
    def validate_changes(cls, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Check partial field values against this model.

        ``changes`` is keyed by stored names. Declared fields are validated
        with their own type and constraints and returned in stored form;
        undeclared fields pass through. Dotted paths into declared fields
        are refused, since only a whole value can be checked.

        Raises:
            ValidationError: If a value does not fit its field
        """
        fields = {
            (info.alias or name): info for name, info in cls.model_fields.items()
        }
        checked = {}
        for key, value in changes.items():
            head = key.split(".", 1)[0]
            info = fields.get(head)
            if info is None:
                checked[key] = value
                continue
            if head != key:
                raise ValidationError(f"Set {head} as a whole, not {key}")

            annotation = info.annotation
            if info.metadata:
                annotation = Annotated[(annotation, *info.metadata)]
            adapter = TypeAdapter(annotation)
            try:
                valid = adapter.validate_python(value)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid value for {key}: {e}") from e
            checked[key] = adapter.dump_python(valid, by_alias=True)
        return checked
