"""Type definitions for dsrepo."""

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence, Union

# Application form of a stored document: always carries a string "id".
Entity = dict[str, Any]

# Reserved property name addressing the entity key in projections and sorts.
KEY_PROPERTY = "__key__"

FilterOperator = Literal["=", "<", "<=", ">", ">="]


@dataclass(frozen=True)
class Filter:
    """Comparison filter on a single property.

    An equality filter against an array property matches entities whose
    array contains the value.
    """

    op: FilterOperator
    value: Any


@dataclass(frozen=True)
class Sort:
    """Sort clause. Use KEY_PROPERTY to order by entity key."""

    property: str
    descending: bool = False


@dataclass(frozen=True)
class QueryOptions:
    """Immutable description of a repository query.

    Attributes:
        filters: Property name to literal value (equality) or Filter.
        select: Properties to project. Empty or None selects everything;
            [KEY_PROPERTY] returns id-only entities.
        sort: One Sort or a sequence applied in order.
        limit: Maximum number of results.
        offset: Number of results to skip.
        start: Cursor to resume from.
        end: Cursor to stop at.
    """

    filters: Mapping[str, Any] = field(default_factory=dict)
    select: Sequence[str] | None = None
    sort: Union[Sort, Sequence[Sort], None] = None
    limit: int | None = None
    offset: int | None = None
    start: str | None = None
    end: str | None = None


@dataclass
class QueryInfo:
    """Pagination metadata returned alongside query results.

    Attributes:
        end_cursor: Cursor positioned after the last result, reusable as
            QueryOptions.start or QueryOptions.end. None when the driver
            reports no further results.
        more_results: Whether the driver reported more results.
    """

    end_cursor: str | None = None
    more_results: bool = False


@dataclass
class IndexEntry:
    """Document pushed to the search service."""

    id: str
    fields: dict[str, Any]


@dataclass(frozen=True)
class Page:
    """Search result window."""

    limit: int
    offset: int = 0


@dataclass(frozen=True)
class SearchSort:
    """Search result ordering."""

    field: str
    direction: Literal["ASC", "DESC"] = "ASC"


@dataclass
class SearchQueryResult:
    """Raw search service response: matched ids only."""

    result_count: int
    limit: int
    offset: int
    ids: list[str]


@dataclass
class SearchResults:
    """Search response with matched ids rehydrated into entities."""

    result_count: int
    limit: int
    offset: int
    results: list[Entity]
