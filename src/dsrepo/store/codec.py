"""Conversion between application entities and Datastore entities."""

from typing import Any, Collection, Literal

from google.cloud import datastore

from ..core.exceptions import ValidationError
from ..core.types import Entity
from ..core.validation import Validator

Direction = Literal["load", "save"]


class EntityCodec:
    """Maps {"id": ..., **fields} to a keyed Datastore entity and back.

    The application form carries the id as a field; the storage form
    moves it into the key (kind, id) and stores the remaining fields.
    """

    def __init__(
        self,
        client: datastore.Client,
        kind: str,
        validator: Validator | None = None,
        indexed: Collection[str] | None = None,
    ):
        """Initialize codec.

        Args:
            client: Client used to build keys (project and namespace).
            kind: Datastore kind of every document handled by this codec.
            validator: Optional validator run on load and save.
            indexed: Top-level fields to index. None indexes every field;
                otherwise all other fields are stored unindexed.
        """
        self.client = client
        self.kind = kind
        self.validator = validator
        self.indexed = frozenset(indexed) if indexed is not None else None

    def key(self, entity_id: str) -> datastore.Key:
        """Build the key for an id in this kind."""
        return self.client.key(self.kind, entity_id)

    def to_document(self, entity: Entity) -> datastore.Entity:
        """Encode an application entity for storage.

        Args:
            entity: Entity with an "id" field.

        Returns:
            Datastore entity keyed by (kind, id) without the "id" field.
        """
        data = dict(entity)
        entity_id = data.pop("id")
        document = datastore.Entity(
            key=self.key(entity_id),
            exclude_from_indexes=self._unindexed(data),
        )
        document.update({name: _to_embedded(value) for name, value in data.items()})
        return document

    def _unindexed(self, data: dict[str, Any]) -> tuple[str, ...]:
        if self.indexed is None:
            return ()
        return tuple(name for name in data if name not in self.indexed)

    def from_document(self, document: datastore.Entity) -> Entity:
        """Decode a stored entity into application form."""
        entity: Entity = {"id": document.key.id_or_name}
        entity.update({name: _to_plain(value) for name, value in document.items()})
        return entity

    def validate(self, entity: Entity, direction: Direction) -> Entity:
        """Run the validator, if any.

        Args:
            entity: Entity in application form.
            direction: "load" after decoding, "save" before encoding.

        Returns:
            The validated entity (unchanged when no validator is set).

        Raises:
            ValidationError: If the validator reports errors.
        """
        if self.validator is None:
            return entity

        result = self.validator.validate(entity)
        if not result.ok:
            raise ValidationError(self.kind, entity.get("id"), direction, result.errors)
        return result.value


def _to_embedded(value: Any) -> Any:
    """Convert nested dicts to embedded entities the driver can encode."""
    if isinstance(value, dict) and not isinstance(value, datastore.Entity):
        embedded = datastore.Entity()
        embedded.update({name: _to_embedded(inner) for name, inner in value.items()})
        return embedded
    if isinstance(value, list):
        return [_to_embedded(item) for item in value]
    return value


def _to_plain(value: Any) -> Any:
    """Convert embedded Datastore entities to plain dicts."""
    if isinstance(value, datastore.Entity):
        return {name: _to_plain(inner) for name, inner in value.items()}
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    return value
