"""Core types, configuration and errors for dsrepo."""

from .config import DEFAULT_DELETE_BATCH_SIZE, DatastoreConfig
from .context import DISABLE_TIMESTAMP_UPDATE, RequestContext, get_value
from .exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    NotFoundError,
    QueryError,
    RepositoryError,
    ValidationError,
)
from .types import (
    KEY_PROPERTY,
    Entity,
    Filter,
    IndexEntry,
    Page,
    QueryInfo,
    QueryOptions,
    SearchQueryResult,
    SearchResults,
    SearchSort,
    Sort,
)
from .validation import (
    FunctionValidator,
    PydanticValidator,
    ValidationResult,
    Validator,
)

__all__ = [
    # Config
    "DatastoreConfig",
    "DEFAULT_DELETE_BATCH_SIZE",
    # Context
    "RequestContext",
    "DISABLE_TIMESTAMP_UPDATE",
    "get_value",
    # Errors
    "RepositoryError",
    "ConfigurationError",
    "QueryError",
    "NotFoundError",
    "AlreadyExistsError",
    "ValidationError",
    # Types
    "Entity",
    "KEY_PROPERTY",
    "Filter",
    "Sort",
    "QueryOptions",
    "QueryInfo",
    "IndexEntry",
    "Page",
    "SearchSort",
    "SearchQueryResult",
    "SearchResults",
    # Validation
    "Validator",
    "ValidationResult",
    "PydanticValidator",
    "FunctionValidator",
]
