"""dsrepo: typed repositories over Google Cloud Datastore."""

from .core import (
    DISABLE_TIMESTAMP_UPDATE,
    KEY_PROPERTY,
    AlreadyExistsError,
    ConfigurationError,
    DatastoreConfig,
    Entity,
    Filter,
    FunctionValidator,
    IndexEntry,
    NotFoundError,
    Page,
    PydanticValidator,
    QueryError,
    QueryInfo,
    QueryOptions,
    RepositoryError,
    RequestContext,
    SearchResults,
    SearchSort,
    Sort,
    ValidationError,
    Validator,
)
from .search import SearchOptions, SearchService
from .store import (
    DatastoreLoader,
    DatastoreRepository,
    TimestampedRepository,
    connect,
    datastore_provider,
    new_timestamped_entity,
    run_in_transaction,
)

__version__ = "1.0.0"

__all__ = [
    "DatastoreRepository",
    "TimestampedRepository",
    "DatastoreLoader",
    "connect",
    "datastore_provider",
    "run_in_transaction",
    "new_timestamped_entity",
    "DatastoreConfig",
    "RequestContext",
    "DISABLE_TIMESTAMP_UPDATE",
    "Entity",
    "KEY_PROPERTY",
    "Filter",
    "Sort",
    "QueryOptions",
    "QueryInfo",
    "IndexEntry",
    "Page",
    "SearchSort",
    "SearchResults",
    "SearchOptions",
    "SearchService",
    "Validator",
    "PydanticValidator",
    "FunctionValidator",
    "RepositoryError",
    "ConfigurationError",
    "QueryError",
    "NotFoundError",
    "AlreadyExistsError",
    "ValidationError",
]
