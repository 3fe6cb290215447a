"""Test fakes for testing without real infrastructure.

This module provides in-memory implementations of:
- The Datastore client (for testing loaders and repositories)
- The search service port (for testing search synchronization)

Example:
    from tests.fakes import InMemoryDatastore, RecordingSearchService

    client = InMemoryDatastore()
    repository = DatastoreRepository("items", client=client)
"""

from .datastore import (
    InMemoryDatastore,
    InMemoryQuery,
    InMemoryTransaction,
    decode_cursor,
    encode_cursor,
)
from .search import FailingSearchService, RecordingSearchService

__all__ = [
    # Datastore fakes
    "InMemoryDatastore",
    "InMemoryTransaction",
    "InMemoryQuery",
    "encode_cursor",
    "decode_cursor",
    # Search fakes
    "RecordingSearchService",
    "FailingSearchService",
]
