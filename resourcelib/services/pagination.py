"""Pagination envelope and query shaping helpers.

Services that hold their data in memory (or fetch it in bulk) use these
helpers to interpret a query the same way:

- ``filter_query`` separates reserved ``$`` keys from field criteria
- ``matches`` tests one item against field criteria
- ``sort_items`` and ``select_fields`` apply ``$sort`` and ``$select``
- ``paginate`` cuts a page and wraps it in a ``Page``

``find`` results are told apart by type: a ``Page`` is paginated, a list is
not. ``Page.to_dict`` provides the plain ``{total, limit, skip, data}``
mapping for consumers that expect that shape.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from resourcelib.core.errors import BadRequest

from .params import PaginationOptions

logger = logging.getLogger(__name__)

RESERVED_KEYS = ('$limit', '$skip', '$sort', '$select')


class Page(BaseModel):
    """A bounded slice of a result set plus its totals."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    total: int = Field(..., ge=0, description="Number of candidates before limit/skip")
    limit: int = Field(..., ge=0, description="Page size actually applied")
    skip: int = Field(..., ge=0, description="Offset actually applied")
    data: List[Any] = Field(default_factory=list, description="Items on this page")

    @model_validator(mode='after')
    def validate_bounds(self) -> 'Page':
        if len(self.data) > self.limit:
            raise ValueError(f"Page holds {len(self.data)} items but limit is {self.limit}")
        if self.skip + len(self.data) > self.total:
            raise ValueError(f"skip ({self.skip}) + page size ({len(self.data)}) exceeds total ({self.total})")
        return self

    def __len__(self) -> int:
        return len(self.data)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "limit": self.limit, "skip": self.skip, "data": list(self.data)}


class QueryFilters(BaseModel):
    """Reserved query keys after validation."""

    model_config = ConfigDict(frozen=True)

    limit: Optional[int] = None
    skip: int = 0
    sort: Dict[str, int] = Field(default_factory=dict)
    select: Optional[List[str]] = None


def is_page(result: Any) -> bool:
    """Return True if a ``find`` result is a pagination envelope."""
    return isinstance(result, Page)


def _parse_non_negative(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise BadRequest.create(f"{name} must be a non-negative integer", component="query", data={"key": name})
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise BadRequest.create(f"{name} must be a non-negative integer", component="query", data={"key": name})
    return value


def _parse_sort(value: Any) -> Dict[str, int]:
    if not isinstance(value, Mapping):
        raise BadRequest.create("$sort must be a mapping of field to 1 or -1", component="query")

    sort: Dict[str, int] = {}
    for field, direction in value.items():
        try:
            direction = int(direction)
        except (TypeError, ValueError):
            direction = 0
        if direction not in (1, -1):
            raise BadRequest.create(
                f"$sort direction for '{field}' must be 1 or -1", component="query", data={"field": field}
            )
        sort[field] = direction
    return sort


def _parse_select(value: Any) -> List[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise BadRequest.create("$select must be a list of field names", component="query")


def filter_query(query: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, Any], QueryFilters]:
    """Split a query into field criteria and reserved filters.

    Args:
        query: Caller-supplied query mapping

    Returns:
        Tuple of (criteria, filters)

    Raises:
        BadRequest: If a reserved key has an invalid value
    """
    query = dict(query or {})

    limit = query.pop('$limit', None)
    skip = query.pop('$skip', None)
    sort = query.pop('$sort', None)
    select = query.pop('$select', None)

    filters = QueryFilters(
        limit=_parse_non_negative('$limit', limit) if limit is not None else None,
        skip=_parse_non_negative('$skip', skip) if skip is not None else 0,
        sort=_parse_sort(sort) if sort is not None else {},
        select=_parse_select(select) if select is not None else None,
    )
    return query, filters


def get_limit(requested: Optional[int], options: Optional[PaginationOptions]) -> Optional[int]:
    """Effective page size for a request.

    Without pagination options the requested limit is used as-is. With
    options, a missing limit falls back to ``default`` and everything is
    capped at ``max``.
    """
    if options is None:
        return requested
    limit = options.default if requested is None else requested
    return min(limit, options.max)


def paginate(items: Sequence[Any], filters: QueryFilters, options: PaginationOptions) -> Page:
    """Cut one page out of ``items`` and wrap it with totals.

    Args:
        items: All matching items, already sorted
        filters: Parsed reserved query keys
        options: Pagination policy in effect

    Returns:
        Page envelope
    """
    limit = get_limit(filters.limit, options)
    total = len(items)
    skip = min(filters.skip, total)
    data = list(items[skip:skip + limit])
    return Page(total=total, limit=limit, skip=skip, data=data)


def _compare(op: Callable[[Any, Any], bool], left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    try:
        return op(left, right)
    except TypeError:
        return False


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    '$in': lambda value, arg: value in arg,
    '$nin': lambda value, arg: value not in arg,
    '$ne': lambda value, arg: value != arg,
    '$lt': lambda value, arg: _compare(lambda a, b: a < b, value, arg),
    '$lte': lambda value, arg: _compare(lambda a, b: a <= b, value, arg),
    '$gt': lambda value, arg: _compare(lambda a, b: a > b, value, arg),
    '$gte': lambda value, arg: _compare(lambda a, b: a >= b, value, arg),
}


def _matches_field(value: Any, condition: Any) -> bool:
    if isinstance(condition, Mapping) and condition and all(str(k).startswith('$') for k in condition):
        for op, arg in condition.items():
            if op not in _OPERATORS:
                raise BadRequest.create(f"Unsupported query operator '{op}'", component="query", data={"operator": op})
            if op in ('$in', '$nin') and not isinstance(arg, (list, tuple, set)):
                raise BadRequest.create(f"{op} expects a list", component="query", data={"operator": op})
            if not _OPERATORS[op](value, arg):
                return False
        return True
    return value == condition


def matches(item: Mapping[str, Any], criteria: Mapping[str, Any]) -> bool:
    """Return True if ``item`` satisfies every criterion.

    Criteria map field names to a value (equality) or to an operator mapping
    such as ``{"$gt": 3}``. ``$or`` takes a list of criteria of which at least
    one must match.

    Raises:
        BadRequest: On an unknown operator or malformed ``$or``
    """
    for key, condition in criteria.items():
        if key == '$or':
            if not isinstance(condition, (list, tuple)):
                raise BadRequest.create("$or expects a list of criteria", component="query")
            if not any(matches(item, sub) for sub in condition):
                return False
            continue
        if key.startswith('$'):
            raise BadRequest.create(f"Unsupported query operator '{key}'", component="query", data={"operator": key})
        if not _matches_field(item.get(key), condition):
            return False
    return True


def sort_items(items: List[Mapping[str, Any]], sort: Mapping[str, int]) -> List[Mapping[str, Any]]:
    """Stable multi-key sort; ``None`` values sort first in ascending order."""
    result = list(items)
    for field, direction in reversed(list(sort.items())):
        try:
            result.sort(
                key=lambda item: (item.get(field) is not None, item.get(field)),
                reverse=direction == -1,
            )
        except TypeError as e:
            raise BadRequest.create(
                f"Cannot sort on '{field}': values are not comparable", component="query", data={"field": field}, cause=e
            ) from e
    return result


def select_fields(item: Mapping[str, Any], fields: Optional[List[str]], id_field: str = 'id') -> Dict[str, Any]:
    """Project ``item`` onto ``fields``, always keeping ``id_field``."""
    if fields is None:
        return dict(item)
    keep = set(fields) | {id_field}
    return {key: value for key, value in item.items() if key in keep}
