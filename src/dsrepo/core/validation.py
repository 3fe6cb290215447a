"""Pluggable entity validators.

A repository accepts any object satisfying the Validator protocol. The
repository never inspects validator internals: it only asks for a
ValidationResult and raises dsrepo's ValidationError when it carries
errors.

Example:
    from pydantic import BaseModel, ConfigDict

    class Item(BaseModel):
        model_config = ConfigDict(extra="allow")
        id: str
        name: str

    repository = DatastoreRepository("items", validator=PydanticValidator(Item))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError


@dataclass
class ValidationResult:
    """Outcome of a validation pass.

    Attributes:
        value: The validated (possibly normalized) value.
        errors: Human readable problems; empty when valid.
    """

    value: Any = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether validation succeeded."""
        return not self.errors


@runtime_checkable
class Validator(Protocol):
    """Validates a decoded or about-to-be-encoded entity."""

    def validate(self, value: Any) -> ValidationResult:
        """Validate value.

        Args:
            value: Entity in application form (dict with "id").

        Returns:
            ValidationResult with the normalized value or errors.
        """
        ...


class PydanticValidator:
    """Validator backed by a pydantic model.

    Valid values are returned as plain dicts containing only the fields
    that were present in the input (defaults are not filled in), so a
    saved entity loads back unchanged.
    """

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def validate(self, value: Any) -> ValidationResult:
        try:
            instance = self.model.model_validate(value)
        except PydanticValidationError as e:
            return ValidationResult(value=value, errors=_format_errors(e))
        dumped = instance.model_dump()
        if isinstance(value, Mapping):
            # Keep only the input's fields so defaults are not filled in
            dumped = {name: dumped[name] for name in value if name in dumped}
        return ValidationResult(value=dumped)


class FunctionValidator:
    """Validator wrapping a callable that raises on invalid input.

    The callable receives the entity and returns the (possibly
    normalized) entity. ValueError and TypeError are reported as
    validation errors; anything else propagates.
    """

    def __init__(self, fn: Callable[[Any], Any]):
        self.fn = fn

    def validate(self, value: Any) -> ValidationResult:
        try:
            return ValidationResult(value=self.fn(value))
        except (ValueError, TypeError) as e:
            return ValidationResult(value=value, errors=[str(e)])


def _format_errors(error: PydanticValidationError) -> list[str]:
    """Flatten pydantic error details to "loc: msg" strings."""
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        messages.append(f"{location}: {detail.get('msg')}" if location else detail.get("msg"))
    return messages
