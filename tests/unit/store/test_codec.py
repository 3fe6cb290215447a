"""Tests for EntityCodec."""

import pytest
from google.cloud import datastore

from dsrepo.core.exceptions import ValidationError
from dsrepo.core.validation import PydanticValidator
from dsrepo.store.codec import EntityCodec
from tests.fakes import InMemoryDatastore
from tests.fakes.items import KIND, RepositoryItem


@pytest.fixture
def codec(client: InMemoryDatastore) -> EntityCodec:
    return EntityCodec(client, KIND)


class TestEncoding:
    """Tests for to_document() and from_document()."""

    def test_id_moves_into_key(self, codec: EntityCodec):
        """The id should become the key name and leave the properties."""
        document = codec.to_document({"id": "123", "name": "one"})

        assert document.key.kind == KIND
        assert document.key.name == "123"
        assert dict(document) == {"name": "one"}
        assert document.exclude_from_indexes == set()

    def test_input_is_not_modified(self, codec: EntityCodec):
        entity = {"id": "123", "name": "one"}

        codec.to_document(entity)

        assert entity == {"id": "123", "name": "one"}

    def test_indexed_fields(self, client: InMemoryDatastore):
        """Fields outside the indexed set should be excluded from indexes."""
        codec = EntityCodec(client, KIND, indexed=["name"])

        document = codec.to_document({"id": "1", "name": "one", "body": "long text"})

        assert document.exclude_from_indexes == {"body"}

    def test_nested_dicts_become_embedded_entities(self, codec: EntityCodec):
        """Nested dicts should be stored as embedded entities."""
        document = codec.to_document(
            {"id": "1", "nested": {"prop4": "x"}, "items": [{"a": 1}]}
        )

        assert isinstance(document["nested"], datastore.Entity)
        assert isinstance(document["items"][0], datastore.Entity)
        assert codec.from_document(document)["nested"] == {"prop4": "x"}

    def test_namespace_from_client(self):
        """Keys should carry the client's namespace."""
        codec = EntityCodec(InMemoryDatastore(namespace="tenant"), KIND)

        assert codec.key("1").namespace == "tenant"

    def test_from_document(self, codec: EntityCodec, client: InMemoryDatastore):
        """Decoding should restore the id field."""
        document = datastore.Entity(key=client.key(KIND, "123"))
        document.update({"name": "one", "tags": ["a", "b"]})

        assert codec.from_document(document) == {
            "id": "123",
            "name": "one",
            "tags": ["a", "b"],
        }

    def test_from_document_converts_nested_entities(
        self, codec: EntityCodec, client: InMemoryDatastore
    ):
        """Embedded entities, including inside lists, should become dicts."""
        inner = datastore.Entity()
        inner.update({"prop4": "x"})
        document = datastore.Entity(key=client.key(KIND, "1"))
        document.update({"nested": inner, "items": [inner]})

        entity = codec.from_document(document)

        assert entity["nested"] == {"prop4": "x"}
        assert type(entity["items"][0]) is dict


class TestValidate:
    """Tests for validate()."""

    def test_without_validator_returns_entity(self, codec: EntityCodec):
        entity = {"id": "1"}

        assert codec.validate(entity, "save") is entity

    def test_error_names_direction(self, client: InMemoryDatastore):
        """Failures should raise ValidationError naming the direction."""
        codec = EntityCodec(client, KIND, validator=PydanticValidator(RepositoryItem))

        with pytest.raises(ValidationError) as exc_info:
            codec.validate({"id": "1"}, "load")

        assert exc_info.value.direction == "load"
        assert exc_info.value.entity_id == "1"
        assert str(exc_info.value).startswith('"repository-items" with id "1" failed to load')
