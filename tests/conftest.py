"""Pytest configuration and fixtures."""

import pytest

from dsrepo.core.validation import PydanticValidator
from dsrepo.store.client import datastore_provider
from dsrepo.store.loader import DatastoreLoader
from dsrepo.store.repository import DatastoreRepository
from tests.fakes import InMemoryDatastore, RecordingSearchService
from tests.fakes.items import KIND, RepositoryItem


@pytest.fixture
def client() -> InMemoryDatastore:
    """Provide an empty in-memory Datastore client."""
    return InMemoryDatastore()


@pytest.fixture
def loader(client: InMemoryDatastore) -> DatastoreLoader:
    """Provide a DatastoreLoader over the in-memory client."""
    return DatastoreLoader(client)


@pytest.fixture
def validator() -> PydanticValidator:
    """Provide a validator for RepositoryItem."""
    return PydanticValidator(RepositoryItem)


@pytest.fixture
def repository(client: InMemoryDatastore) -> DatastoreRepository:
    """Provide a repository without validation."""
    return DatastoreRepository(KIND, client=client)


@pytest.fixture
def validated_repository(
    client: InMemoryDatastore, validator: PydanticValidator
) -> DatastoreRepository:
    """Provide a repository validating against RepositoryItem."""
    return DatastoreRepository(KIND, client=client, validator=validator)


@pytest.fixture
def search_service() -> RecordingSearchService:
    """Provide a search service recording its calls."""
    return RecordingSearchService()


@pytest.fixture(autouse=True)
def reset_datastore_provider():
    """Keep the process-wide default client from leaking between tests."""
    yield
    datastore_provider.clear()
