"""Translation of QueryOptions into Datastore queries."""

from typing import Any, Sequence

from google.cloud.datastore.query import PropertyFilter
from loguru import logger

from ..core.context import RequestContext
from ..core.exceptions import QueryError
from ..core.types import KEY_PROPERTY, Entity, Filter, QueryInfo, QueryOptions, Sort
from .codec import EntityCodec
from .loader import DatastoreLoader

SUPPORTED_OPERATORS = frozenset({"=", "<", "<=", ">", ">="})


class QueryBuilder:
    """Builds, runs and decodes queries for one kind."""

    def __init__(self, codec: EntityCodec, loader: DatastoreLoader):
        """Initialize builder.

        Args:
            codec: Codec of the queried kind.
            loader: Loader that executes the query.
        """
        self.codec = codec
        self.loader = loader

    def build(self, options: QueryOptions) -> Any:
        """Create the driver query for options.

        Filters and projection are applied first, then sort order.
        Window options (limit, offset, cursors) are fetch arguments.

        Raises:
            QueryError: On an unsupported filter operator.
        """
        query = self.codec.client.query(kind=self.codec.kind)

        for name, condition in options.filters.items():
            query.add_filter(filter=self._property_filter(name, condition))

        select = _projection(options.select)
        if select == [KEY_PROPERTY]:
            query.keys_only()
        elif select:
            query.projection = select

        order = [_order_clause(sort) for sort in _sorts(options.sort)]
        if order:
            query.order = order

        return query

    async def execute(
        self, options: QueryOptions, ctx: RequestContext | None = None
    ) -> tuple[list[Entity], QueryInfo]:
        """Run a query and decode its results.

        Args:
            options: Query description.
            ctx: Request context (queries read committed state).

        Returns:
            Tuple of (entities, QueryInfo).
        """
        query = self.build(options)
        fetch_options = {
            name: value
            for name, value in (
                ("limit", options.limit),
                ("offset", options.offset),
                ("start_cursor", options.start),
                ("end_cursor", options.end),
            )
            if value is not None
        }

        logger.debug(f"Query {self.codec.kind}: {options}")
        documents, cursor = await self.loader.run_query(query, **fetch_options)

        # Projected entities are structurally partial, so skip validation
        projected = bool(_projection(options.select))
        results = []
        for document in documents:
            entity = self.codec.from_document(document)
            if not projected:
                entity = self.codec.validate(entity, "load")
            results.append(entity)

        logger.debug(f"Query {self.codec.kind} returned {len(results)} results")
        return results, QueryInfo(end_cursor=cursor, more_results=cursor is not None)

    def _property_filter(self, name: str, condition: Any) -> PropertyFilter:
        """Build a driver filter from a literal or Filter condition."""
        if isinstance(condition, Filter):
            op, value = condition.op, condition.value
        else:
            op, value = "=", condition

        if op not in SUPPORTED_OPERATORS:
            raise QueryError(f"Unsupported filter operator {op!r} on {name!r}")

        if name in ("id", KEY_PROPERTY):
            return PropertyFilter(KEY_PROPERTY, op, self.codec.key(value))
        return PropertyFilter(name, op, value)


def _projection(select: Sequence[str] | None) -> list[str]:
    """Normalize select: "id" is implied by the key and never projected."""
    if not select:
        return []
    fields = [name for name in select if name != "id"]
    if not fields:
        return [KEY_PROPERTY]
    if KEY_PROPERTY in fields and len(fields) > 1:
        fields.remove(KEY_PROPERTY)
    return fields


def _sorts(sort: Sort | Sequence[Sort] | None) -> list[Sort]:
    if sort is None:
        return []
    if isinstance(sort, Sort):
        return [sort]
    if not all(isinstance(item, Sort) for item in sort):
        raise QueryError(f"Invalid sort specification: {sort!r}")
    return list(sort)


def _order_clause(sort: Sort) -> str:
    name = KEY_PROPERTY if sort.property == "id" else sort.property
    return f"-{name}" if sort.descending else name
