"""Request-scoped context passed explicitly through repository calls.

A RequestContext replaces ambient per-request storage: it carries the
active transaction (if any) and named request values such as the
timestamp-disable flag. Contexts are immutable from the caller's point
of view; entering a transaction produces a child context.

Example:
    ctx = RequestContext({DISABLE_TIMESTAMP_UPDATE: True})
    await repository.save(entity, ctx=ctx)

    async with loader.transaction(ctx) as tx_ctx:
        await repository.save(entity, ctx=tx_ctx)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..store.loader import TransactionState

# Request value that skips automatic created_at/updated_at stamping.
DISABLE_TIMESTAMP_UPDATE = "skip_timestamp_update"


@dataclass(frozen=True)
class RequestContext:
    """Explicit per-request state.

    Attributes:
        values: Named request values read with get().
        transaction: Active transaction state, or None outside a transaction.
    """

    values: Mapping[str, Any] = field(default_factory=dict)
    transaction: "TransactionState | None" = None

    def get(self, name: str, default: Any = None) -> Any:
        """Return a request value, or default when unset."""
        return self.values.get(name, default)

    def with_values(self, **values: Any) -> "RequestContext":
        """Return a child context with additional request values."""
        return replace(self, values={**self.values, **values})

    def with_transaction(self, transaction: "TransactionState") -> "RequestContext":
        """Return a child context bound to a transaction."""
        return replace(self, transaction=transaction)

    @property
    def in_transaction(self) -> bool:
        """Whether calls made with this context join a transaction."""
        return self.transaction is not None and self.transaction.active


def get_value(ctx: RequestContext | None, name: str, default: Any = None) -> Any:
    """Read a request value from an optional context."""
    if ctx is None:
        return default
    return ctx.get(name, default)
