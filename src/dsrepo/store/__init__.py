"""Datastore persistence layer for dsrepo.

This package provides:
- connect / datastore_provider: Datastore client construction and defaults
- DatastoreLoader: transaction-aware batch reads and writes
- EntityCodec: application entity <-> Datastore entity mapping
- QueryBuilder: QueryOptions -> Datastore query
- DatastoreRepository: CRUD, query and search over one kind
- TimestampedRepository: repository stamping created_at/updated_at

Example:
    from dsrepo.store import DatastoreRepository, connect

    client = connect()
    items = DatastoreRepository("items", client=client)

    async with items.loader.transaction() as ctx:
        item = await items.get_required("123", ctx)
        item["name"] = "Renamed"
        await items.save(item, ctx)
"""

from .client import DatastoreProvider, connect, datastore_provider
from .codec import EntityCodec
from .loader import DatastoreLoader, TransactionState, key_path
from .query import QueryBuilder
from .repository import DatastoreRepository, PersistHook
from .timestamped import (
    CREATED_AT,
    GENERATE_TIMESTAMP,
    UPDATED_AT,
    TimestampedRepository,
    TimestampHook,
    new_timestamped_entity,
)
from .transactional import run_in_transaction

__all__ = [
    # Client
    "connect",
    "DatastoreProvider",
    "datastore_provider",
    # Loader
    "DatastoreLoader",
    "TransactionState",
    "key_path",
    "run_in_transaction",
    # Mapping and queries
    "EntityCodec",
    "QueryBuilder",
    # Repositories
    "DatastoreRepository",
    "PersistHook",
    "TimestampedRepository",
    "TimestampHook",
    "new_timestamped_entity",
    "GENERATE_TIMESTAMP",
    "CREATED_AT",
    "UPDATED_AT",
]
