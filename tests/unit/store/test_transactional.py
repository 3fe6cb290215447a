"""Tests for run_in_transaction."""

import pytest

from dsrepo.core.context import RequestContext
from dsrepo.store.repository import DatastoreRepository
from dsrepo.store.transactional import run_in_transaction
from tests.fakes import InMemoryDatastore
from tests.fakes.items import KIND, make_item


class TestRunInTransaction:
    """Tests for run_in_transaction()."""

    @pytest.mark.asyncio
    async def test_returns_result_and_commits(
        self, repository: DatastoreRepository, client: InMemoryDatastore
    ):
        async def work(ctx: RequestContext) -> str:
            await repository.save(make_item("1"), ctx)
            return "done"

        assert await run_in_transaction(repository.loader, work) == "done"
        assert client.calls[-1] == "commit"
        assert len(client.stored(KIND)) == 1

    @pytest.mark.asyncio
    async def test_read_modify_write(self, repository: DatastoreRepository):
        """Reads inside the transaction should see earlier writes."""
        await repository.save(make_item("1", counter=1))

        async def increment(ctx: RequestContext) -> None:
            item = await repository.get_required("1", ctx)
            item["counter"] += 1
            await repository.save(item, ctx)
            assert (await repository.get("1", ctx))["counter"] == 2

        await run_in_transaction(repository.loader, increment)

        assert (await repository.get("1"))["counter"] == 2

    @pytest.mark.asyncio
    async def test_error_discards_writes(
        self, repository: DatastoreRepository, client: InMemoryDatastore
    ):
        async def fail(ctx: RequestContext) -> None:
            await repository.save(make_item("1"), ctx)
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await run_in_transaction(repository.loader, fail)

        assert client.stored(KIND) == []

    @pytest.mark.asyncio
    async def test_nested_call_joins_outer(
        self, repository: DatastoreRepository, client: InMemoryDatastore
    ):
        """An inner call with a transactional context should not commit early."""

        async def inner(ctx: RequestContext) -> None:
            await repository.save(make_item("2"), ctx)

        async def outer(ctx: RequestContext) -> None:
            await repository.save(make_item("1"), ctx)
            await run_in_transaction(repository.loader, inner, ctx)
            assert client.stored(KIND) == []

        await run_in_transaction(repository.loader, outer)

        assert client.calls.count("commit") == 1
        assert len(client.stored(KIND)) == 2
