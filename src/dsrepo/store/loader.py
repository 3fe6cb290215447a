"""Transaction-aware batch reads and writes against Datastore.

Outside a transaction every call is one round trip to the driver.
Inside a transaction (a RequestContext bound to a TransactionState)
reads go through the transaction's cache and writes are buffered until
commit, so a unit of work always sees its own writes:

    async with loader.transaction() as ctx:
        await loader.save([entity], ctx=ctx)
        [same] = await loader.get([entity.key], ctx=ctx)  # buffered value
    # committed here

All methods are batch methods; results preserve input order.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Sequence

from google.api_core import exceptions as api_exceptions
from google.cloud import datastore
from loguru import logger

from ..core.context import RequestContext
from ..core.exceptions import AlreadyExistsError


KeyPath = tuple[str | None, tuple]


def key_path(key: datastore.Key) -> KeyPath:
    """Hashable identity of a key (namespace, flat path), used for cache lookups."""
    return (key.namespace, tuple(key.flat_path))


@dataclass
class TransactionState:
    """In-flight state of one transaction.

    Attributes:
        transaction: Open driver transaction.
        snapshots: Entities read within the transaction (None if absent).
        pending: Buffered writes keyed by key path; None marks a delete.
        active: False once committed or rolled back.
    """

    transaction: datastore.Transaction
    snapshots: dict[KeyPath, datastore.Entity | None] = field(default_factory=dict)
    pending: dict[KeyPath, tuple[datastore.Key, datastore.Entity | None]] = field(
        default_factory=dict
    )
    active: bool = True

    def lookup(self, key: datastore.Key) -> tuple[bool, datastore.Entity | None]:
        """Return (known, entity) for a key from pending writes or snapshots."""
        path = key_path(key)
        if path in self.pending:
            return True, self.pending[path][1]
        if path in self.snapshots:
            return True, self.snapshots[path]
        return False, None

    def discard(self) -> None:
        self.snapshots.clear()
        self.pending.clear()
        self.active = False


class DatastoreLoader:
    """Batch loader over a Datastore client."""

    def __init__(self, client: datastore.Client):
        """Initialize with a Datastore client.

        Args:
            client: Driver client used for all round trips.
        """
        self.client = client

    async def get(
        self, keys: Sequence[datastore.Key], ctx: RequestContext | None = None
    ) -> list[datastore.Entity | None]:
        """Fetch entities by key.

        Args:
            keys: Keys to fetch.
            ctx: Request context; reads join its transaction if any.

        Returns:
            One entity or None per key, in input order.
        """
        if not keys:
            return []

        state = _transaction_of(ctx)
        if state is None:
            found = await asyncio.to_thread(self.client.get_multi, list(keys))
            by_path = {key_path(entity.key): entity for entity in found}
            return [by_path.get(key_path(key)) for key in keys]

        misses = {}
        for key in keys:
            known, _ = state.lookup(key)
            if not known:
                misses[key_path(key)] = key

        if misses:
            logger.debug(f"Transactional read of {len(misses)} keys")
            found = await asyncio.to_thread(
                self.client.get_multi,
                list(misses.values()),
                transaction=state.transaction,
            )
            by_path = {key_path(entity.key): entity for entity in found}
            for path in misses:
                state.snapshots[path] = by_path.get(path)

        return [state.lookup(key)[1] for key in keys]

    async def save(
        self, entities: Sequence[datastore.Entity], ctx: RequestContext | None = None
    ) -> None:
        """Upsert entities, overwriting stored documents entirely."""
        if not entities:
            return

        state = _transaction_of(ctx)
        if state is None:
            await asyncio.to_thread(self.client.put_multi, list(entities))
            return

        for entity in entities:
            state.pending[key_path(entity.key)] = (entity.key, entity)

    async def update(
        self, entities: Sequence[datastore.Entity], ctx: RequestContext | None = None
    ) -> None:
        """Overwrite entities. Same persistence path as save()."""
        await self.save(entities, ctx)

    async def upsert(
        self, entities: Sequence[datastore.Entity], ctx: RequestContext | None = None
    ) -> None:
        await self.save(entities, ctx)

    async def insert(
        self, entities: Sequence[datastore.Entity], ctx: RequestContext | None = None
    ) -> None:
        """Create entities, failing if any key is already stored.

        Outside a transaction the check and the writes run in a short
        internal transaction, so the batch is written completely or not
        at all.

        Raises:
            AlreadyExistsError: If any key exists (or repeats in the batch).
        """
        if not entities:
            return

        if _transaction_of(ctx) is None:
            async with self.transaction(ctx) as tx_ctx:
                await self.insert(entities, tx_ctx)
            return

        keys = [entity.key for entity in entities]
        existing = await self.get(keys, ctx)
        seen: set[KeyPath] = set()
        conflicts = []
        for key, current in zip(keys, existing):
            path = key_path(key)
            if current is not None or path in seen:
                conflicts.append(key)
            seen.add(path)

        if conflicts:
            raise AlreadyExistsError(
                conflicts[0].kind, [key.id_or_name for key in conflicts]
            )

        await self.save(entities, ctx)

    async def delete(
        self, keys: Sequence[datastore.Key], ctx: RequestContext | None = None
    ) -> None:
        """Delete entities by key. Missing keys are ignored."""
        if not keys:
            return

        state = _transaction_of(ctx)
        if state is None:
            await asyncio.to_thread(self.client.delete_multi, list(keys))
            return

        for key in keys:
            state.pending[key_path(key)] = (key, None)

    async def run_query(
        self, query: Any, **fetch_options: Any
    ) -> tuple[list[datastore.Entity], str | None]:
        """Execute a driver query.

        Queries always read committed state, even when issued inside a
        transaction.

        Args:
            query: Driver query object.
            **fetch_options: limit, offset, start_cursor, end_cursor.

        Returns:
            Tuple of (entities, end cursor or None).
        """

        def fetch() -> tuple[list[datastore.Entity], str | None]:
            iterator = query.fetch(**fetch_options)
            entities = list(iterator)
            cursor = iterator.next_page_token
            if isinstance(cursor, bytes):
                cursor = cursor.decode("ascii")
            return entities, cursor

        return await asyncio.to_thread(fetch)

    @asynccontextmanager
    async def transaction(
        self, ctx: RequestContext | None = None
    ) -> AsyncIterator[RequestContext]:
        """Run a unit of work in a Datastore transaction.

        Yields a context bound to the transaction. Buffered writes are
        committed on clean exit and discarded on error. If ctx is already
        in a transaction it is yielded unchanged and the outer transaction
        decides the outcome.

        Raises:
            AlreadyExistsError: If the driver rejects the commit because a
                key already exists.
        """
        if ctx is not None and ctx.in_transaction:
            yield ctx
            return

        transaction = self.client.transaction()
        await asyncio.to_thread(transaction.begin)
        state = TransactionState(transaction)
        logger.debug("Transaction started")

        try:
            yield (ctx or RequestContext()).with_transaction(state)
        except BaseException:
            # Includes cancellation, which must not leave the transaction open
            logger.warning("Transaction failed, rolling back")
            state.discard()
            await asyncio.to_thread(transaction.rollback)
            raise

        try:
            await self._commit(state)
        finally:
            state.discard()

    async def _commit(self, state: TransactionState) -> None:
        """Flush buffered writes into the transaction and commit it."""
        transaction = state.transaction
        puts = deletes = 0
        for key, entity in state.pending.values():
            if entity is None:
                transaction.delete(key)
                deletes += 1
            else:
                transaction.put(entity)
                puts += 1

        try:
            await asyncio.to_thread(transaction.commit)
        except api_exceptions.AlreadyExists as e:
            keys = [key for key, entity in state.pending.values() if entity is not None]
            kind = keys[0].kind if keys else ""
            raise AlreadyExistsError(kind, [key.id_or_name for key in keys]) from e

        logger.info(f"Transaction committed: {puts} puts, {deletes} deletes")


def _transaction_of(ctx: RequestContext | None) -> TransactionState | None:
    """Active transaction state of a context, if any."""
    if ctx is not None and ctx.in_transaction:
        return ctx.transaction
    return None
