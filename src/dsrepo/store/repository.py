"""Typed CRUD and query repository over one Datastore kind."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Sequence

from google.cloud import datastore
from loguru import logger

from ..core.config import DatastoreConfig
from ..core.context import RequestContext
from ..core.exceptions import ConfigurationError, NotFoundError
from ..core.types import (
    Entity,
    Page,
    QueryInfo,
    QueryOptions,
    SearchResults,
    SearchSort,
)
from ..core.validation import Validator
from ..search.ports import SearchFields, SearchOptions
from ..search.sync import SearchSync
from .client import datastore_provider
from .codec import EntityCodec
from .loader import DatastoreLoader
from .query import QueryBuilder

# Transforms entities before they are validated and stored.
PersistHook = Callable[[list[Entity], "RequestContext | None"], list[Entity]]

_Write = Callable[[Sequence[datastore.Entity], "RequestContext | None"], Awaitable[None]]


class DatastoreRepository:
    """Repository for entities of a single Datastore kind.

    Entities are plain dicts with a string "id". Every write runs the
    persistence pipeline: before_persist hooks, save validation,
    encoding, the loader write, then search indexing when configured.

    Example:
        repository = DatastoreRepository("items", client=client)

        await repository.save({"id": "123", "name": "Item"})
        item = await repository.get("123")

        items, info = await repository.query(
            QueryOptions(filters={"name": "Item"}, limit=10)
        )
    """

    def __init__(
        self,
        kind: str,
        *,
        client: datastore.Client | None = None,
        loader: DatastoreLoader | None = None,
        validator: Validator | None = None,
        index: Mapping[str, bool] | None = None,
        search: SearchOptions | None = None,
        hooks: Sequence[PersistHook] = (),
        config: DatastoreConfig | None = None,
    ):
        """Initialize repository.

        Args:
            kind: Datastore kind (collection name).
            client: Datastore client. Defaults to datastore_provider's client.
            loader: Loader to use. Defaults to a loader over client.
            validator: Optional validator run on load and save.
            index: Field -> indexed flag. When given, fields not mapped to
                True are stored unindexed.
            search: Search synchronization settings.
            hooks: Persistence hooks, applied in order by before_persist().
            config: Repository settings (delete batch size).

        Raises:
            ConfigurationError: If no client is given and none is provided.
        """
        self.kind = kind
        self.client = client or (loader.client if loader else datastore_provider.get())
        self.loader = loader or DatastoreLoader(self.client)
        self.config = config or DatastoreConfig()
        self.hooks: list[PersistHook] = list(hooks)

        indexed = None
        if index is not None:
            indexed = [name for name, enabled in index.items() if enabled]
        self.codec = EntityCodec(self.client, kind, validator=validator, indexed=indexed)
        self.query_builder = QueryBuilder(self.codec, self.loader)
        self._search = SearchSync(search) if search else None

    def key(self, entity_id: str) -> datastore.Key:
        """Build the Datastore key for an id."""
        return self.codec.key(entity_id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def exists(self, entity_id: str, ctx: RequestContext | None = None) -> bool:
        """Check whether a document with this id is stored."""
        [document] = await self.loader.get([self.key(entity_id)], ctx)
        return document is not None

    async def get(
        self, entity_id: str, ctx: RequestContext | None = None
    ) -> Entity | None:
        """Fetch one entity.

        Returns:
            The entity, or None if it does not exist.

        Raises:
            ValidationError: If the stored document fails validation.
        """
        [entity] = await self.get_many([entity_id], ctx)
        return entity

    async def get_many(
        self, entity_ids: Sequence[str], ctx: RequestContext | None = None
    ) -> list[Entity | None]:
        """Fetch entities in one round trip.

        Returns:
            One entity or None per id, in input order.
        """
        documents = await self.loader.get([self.key(i) for i in entity_ids], ctx)
        logger.debug(
            f"Fetched {self.kind}: requested={len(entity_ids)}, "
            f"found={sum(d is not None for d in documents)}"
        )
        return [self._decode(document) for document in documents]

    async def get_required(
        self, entity_id: str, ctx: RequestContext | None = None
    ) -> Entity:
        """Fetch one entity that must exist.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        [entity] = await self.get_required_many([entity_id], ctx)
        return entity

    async def get_required_many(
        self, entity_ids: Sequence[str], ctx: RequestContext | None = None
    ) -> list[Entity]:
        """Fetch entities that must all exist.

        Raises:
            NotFoundError: Naming the first requested id that is missing.
        """
        entities = await self.get_many(entity_ids, ctx)
        for entity_id, entity in zip(entity_ids, entities):
            if entity is None:
                raise NotFoundError(self.kind, entity_id)
        return entities

    async def query(
        self, options: QueryOptions | None = None, ctx: RequestContext | None = None
    ) -> tuple[list[Entity], QueryInfo]:
        """Run a query over this kind.

        Args:
            options: Filters, projection, sort and window. Defaults to all.
            ctx: Request context.

        Returns:
            Tuple of (entities, QueryInfo).
        """
        return await self.query_builder.execute(options or QueryOptions(), ctx)

    async def search(
        self,
        fields: SearchFields,
        sort: SearchSort | None = None,
        page: Page | None = None,
        ctx: RequestContext | None = None,
    ) -> SearchResults:
        """Full-text search through the configured search service.

        Matching is delegated to the service; matched ids are loaded from
        Datastore. Ids the index still holds but Datastore no longer does
        are left out of the results.

        Raises:
            ConfigurationError: If the repository has no search configured.
        """
        if self._search is None:
            raise ConfigurationError(f"Search is not configured for {self.kind!r}")

        found = await self._search.query(fields, sort, page)
        entities = await self.get_many(found.ids, ctx)
        results = [entity for entity in entities if entity is not None]
        if len(results) != len(found.ids):
            logger.debug(
                f"Search on {self.kind} matched {len(found.ids) - len(results)} ids "
                "missing from Datastore"
            )
        return SearchResults(
            result_count=found.result_count,
            limit=found.limit,
            offset=found.offset,
            results=results,
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def save(self, entity: Entity, ctx: RequestContext | None = None) -> Entity:
        """Create or fully overwrite an entity.

        Returns:
            The entity as persisted (after hooks and validation).
        """
        [saved] = await self.save_many([entity], ctx)
        return saved

    async def save_many(
        self, entities: Sequence[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        """Create or fully overwrite entities in one round trip."""
        return await self._persist(entities, self.loader.save, ctx)

    async def insert(self, entity: Entity, ctx: RequestContext | None = None) -> Entity:
        """Create an entity.

        Raises:
            AlreadyExistsError: If the id is already stored.
        """
        [inserted] = await self.insert_many([entity], ctx)
        return inserted

    async def insert_many(
        self, entities: Sequence[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        """Create entities; nothing is written if any id is already stored."""
        return await self._persist(entities, self.loader.insert, ctx)

    async def update(self, entity: Entity, ctx: RequestContext | None = None) -> Entity:
        """Overwrite an entity (no partial-field merge)."""
        [updated] = await self.update_many([entity], ctx)
        return updated

    async def update_many(
        self, entities: Sequence[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        return await self._persist(entities, self.loader.update, ctx)

    async def upsert(self, entity: Entity, ctx: RequestContext | None = None) -> Entity:
        [upserted] = await self.upsert_many([entity], ctx)
        return upserted

    async def upsert_many(
        self, entities: Sequence[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        return await self._persist(entities, self.loader.upsert, ctx)

    async def delete(self, *entity_ids: str, ctx: RequestContext | None = None) -> None:
        """Delete entities by id and drop them from the search index."""
        if not entity_ids:
            return
        logger.debug(f"Deleting {self.kind}: ids={list(entity_ids)}")
        await self.loader.delete([self.key(i) for i in entity_ids], ctx)
        if self._search:
            await self._search.delete(list(entity_ids))

    async def delete_all(self) -> None:
        """Delete every entity of this kind and clear the search index.

        Keys are fetched and deleted in batches of config.delete_batch_size
        until a batch comes back short. Runs outside any transaction; writes
        made concurrently may survive.
        """
        batch_size = self.config.delete_batch_size
        total = 0
        while True:
            query = self.client.query(kind=self.kind)
            query.keys_only()
            documents, _ = await self.loader.run_query(query, limit=batch_size)
            if documents:
                await self.loader.delete([document.key for document in documents])
                total += len(documents)
            if len(documents) < batch_size:
                break

        logger.debug(f"Deleted all {self.kind}: {total} entities")
        if self._search:
            await self._search.delete_all()

    def before_persist(
        self, entities: list[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        """Apply persistence hooks in order.

        Called exactly once per write, before validation. Subclasses may
        override; whatever this returns is what gets validated and stored.
        """
        for hook in self.hooks:
            entities = hook(entities, ctx)
        return entities

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _persist(
        self,
        entities: Sequence[Entity],
        write: _Write,
        ctx: RequestContext | None,
    ) -> list[Entity]:
        """Run the write pipeline for a batch."""
        if not entities:
            return []

        prepared = self.before_persist(list(entities), ctx)
        validated = [self.codec.validate(entity, "save") for entity in prepared]
        documents = [self.codec.to_document(entity) for entity in validated]

        logger.debug(
            f"Persisting {self.kind} via {write.__name__}: "
            f"ids={[entity['id'] for entity in validated]}"
        )
        await write(documents, ctx)

        if self._search:
            await self._search.index(validated)
        return validated

    def _decode(self, document: datastore.Entity | None) -> Entity | None:
        if document is None:
            return None
        return self.codec.validate(self.codec.from_document(document), "load")
