"""Mirroring of persisted entities into a search index."""

from typing import Sequence

from loguru import logger

from ..core.types import Entity, IndexEntry, Page, SearchQueryResult, SearchSort
from .ports import IndexConfig, SearchFields, SearchOptions


def build_index_entry(entity: Entity, index_config: IndexConfig) -> IndexEntry:
    """Evaluate the index configuration against one entity.

    Args:
        entity: Entity as it was persisted.
        index_config: Field -> True (copy value) or deriving function.

    Returns:
        IndexEntry with one value per configured field.
    """
    fields = {}
    for name, mapping in index_config.items():
        if mapping is True:
            fields[name] = entity.get(name)
        elif callable(mapping):
            fields[name] = mapping(entity)
    return IndexEntry(id=entity["id"], fields=fields)


class SearchSync:
    """Issues index updates for one repository.

    Each method makes exactly one call to the search service. Errors
    from the service propagate; writes that already reached the
    database are not rolled back.
    """

    def __init__(self, options: SearchOptions):
        self.options = options

    @property
    def index_name(self) -> str:
        return self.options.index_name

    async def index(self, entities: Sequence[Entity]) -> None:
        """Index persisted entities with a single service call."""
        if not entities:
            return
        entries = [build_index_entry(e, self.options.index_config) for e in entities]
        logger.debug(f"Indexing {len(entries)} entries into {self.index_name!r}")
        await self.options.search_service.index(self.index_name, entries)

    async def delete(self, ids: Sequence[str]) -> None:
        """Remove deleted ids from the index."""
        if not ids:
            return
        logger.debug(f"Removing {len(ids)} entries from {self.index_name!r}")
        await self.options.search_service.delete(self.index_name, *ids)

    async def delete_all(self) -> None:
        logger.debug(f"Clearing search index {self.index_name!r}")
        await self.options.search_service.delete_all(self.index_name)

    async def query(
        self,
        fields: SearchFields,
        sort: SearchSort | None = None,
        page: Page | None = None,
    ) -> SearchQueryResult:
        """Ask the search service for ids matching fields."""
        return await self.options.search_service.query(
            self.index_name, fields, sort, page
        )
