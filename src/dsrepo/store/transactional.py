"""Helpers for running work inside a Datastore transaction."""

from typing import Awaitable, Callable, TypeVar

from ..core.context import RequestContext
from .loader import DatastoreLoader

T = TypeVar("T")


async def run_in_transaction(
    loader: DatastoreLoader,
    fn: Callable[[RequestContext], Awaitable[T]],
    ctx: RequestContext | None = None,
) -> T:
    """Run fn with a transactional context and commit if it succeeds.

    Nested calls (ctx already in a transaction) join the outer
    transaction.

    Example:
        async def transfer(tx_ctx):
            source = await accounts.get_required("a", tx_ctx)
            ...
            await accounts.save_many([source, target], tx_ctx)

        await run_in_transaction(accounts.loader, transfer)

    Args:
        loader: Loader owning the transaction.
        fn: Coroutine function receiving the transactional context.
        ctx: Optional parent context whose request values are inherited.

    Returns:
        Whatever fn returns.
    """
    async with loader.transaction(ctx) as tx_ctx:
        return await fn(tx_ctx)
