"""Search index synchronization for repositories."""

from .ports import IndexConfig, IndexFieldMapping, SearchFields, SearchOptions, SearchService
from .sync import SearchSync, build_index_entry

__all__ = [
    "SearchService",
    "SearchOptions",
    "SearchFields",
    "IndexConfig",
    "IndexFieldMapping",
    "SearchSync",
    "build_index_entry",
]
