"""Port definitions for external search services.

A repository configured with SearchOptions mirrors every persisted
entity into a search index and delegates full-text matching to the
service. Programming against the SearchService protocol keeps the
repository testable with in-memory fakes.

Usage:
    class MySearchService:
        async def index(self, index_name, entries): ...
        async def delete(self, index_name, *ids): ...
        async def delete_all(self, index_name): ...
        async def query(self, index_name, fields, sort=None, page=None): ...

    repository = DatastoreRepository(
        "items",
        search=SearchOptions(MySearchService(), "items", {"name": True}),
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol, Sequence, Union, runtime_checkable

if TYPE_CHECKING:
    from ..core.types import Entity, IndexEntry, Page, SearchQueryResult, SearchSort

# Field -> True (copy the entity value) or a function deriving the value.
IndexFieldMapping = Union[bool, Callable[["Entity"], Any]]
IndexConfig = Mapping[str, IndexFieldMapping]

# Field -> search term(s).
SearchFields = Mapping[str, Union[str, Sequence[str]]]


@runtime_checkable
class SearchService(Protocol):
    """External full-text search capability.

    Implementations own the index storage; the repository only pushes
    entries and asks for matching ids.
    """

    async def index(self, index_name: str, entries: Sequence["IndexEntry"]) -> None:
        """Add or replace entries in an index."""
        ...

    async def delete(self, index_name: str, *ids: str) -> None:
        """Remove entries by id."""
        ...

    async def delete_all(self, index_name: str) -> None:
        """Remove every entry from an index."""
        ...

    async def query(
        self,
        index_name: str,
        fields: SearchFields,
        sort: "SearchSort | None" = None,
        page: "Page | None" = None,
    ) -> "SearchQueryResult":
        """Find matching entry ids.

        Args:
            index_name: Index to search.
            fields: Field to search term(s).
            sort: Optional result ordering.
            page: Optional result window.

        Returns:
            SearchQueryResult with matched ids and paging info.
        """
        ...


@dataclass
class SearchOptions:
    """Search synchronization settings for a repository.

    Attributes:
        search_service: Service receiving index updates and queries.
        index_name: Name of the index mirroring the repository's kind.
        index_config: Fields to index and how to derive their values.
    """

    search_service: SearchService
    index_name: str
    index_config: IndexConfig
