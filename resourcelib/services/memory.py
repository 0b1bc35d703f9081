"""In-memory implementation of the full service contract.

This module provides a service backed by a dictionary. It supports all six
operations, the query helpers from ``resourcelib.services.pagination`` and
bulk ``update``/``patch``/``remove`` with a ``None`` id.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from resourcelib.core.errors import BadRequest, Conflict, NotFound

from .base import Id, Service, ServiceMethod, is_id
from .pagination import Page, QueryFilters, filter_query, matches, paginate, select_fields, sort_items
from .params import PaginationOptions, Params

logger = logging.getLogger(__name__)


class MemoryService(Service):
    """Dictionary-backed service.

    Items are stored and returned as copies, so callers never hold a
    reference into the store. Missing ids are assigned from an
    auto-incrementing counter.
    """

    methods = ServiceMethod.ALL

    def __init__(
        self,
        id_field: str = "id",
        start_id: int = 0,
        store: Optional[Mapping[Id, Mapping[str, Any]]] = None,
        paginate: Optional[Union[PaginationOptions, Mapping[str, int]]] = None,
    ):
        """Initialize in-memory service.

        Args:
            id_field: Name of the identifier field
            start_id: Last id in use; the first generated id is ``start_id + 1``
            store: Optional initial items keyed by id
            paginate: Optional pagination policy; when omitted the
                application's policy is applied at setup
        """
        self.id_field = id_field
        self._uid = start_id
        self.store: Dict[Id, Dict[str, Any]] = {}
        for key, value in (store or {}).items():
            self.store[key] = {**value, id_field: key}
        if isinstance(paginate, Mapping):
            paginate = PaginationOptions(**paginate)
        self.paginate = paginate
        self._lock = asyncio.Lock()

    def setup(self, app: Any, location: str) -> None:
        """Adopt the application's pagination policy if none was given."""
        super().setup(app, location)
        settings = getattr(app, 'settings', None)
        if self.paginate is None and settings is not None and settings.paginate_enabled:
            self.paginate = PaginationOptions(default=settings.paginate_default, max=settings.paginate_max)
            logger.debug(f"Memory service at '{location}' paginates with {self.paginate}")

    # Helpers

    def _next_id(self, reserved: Optional[Set[Id]] = None) -> int:
        reserved = reserved or set()
        self._uid += 1
        while self._uid in self.store or self._uid in reserved:
            self._uid += 1
        return self._uid

    @staticmethod
    def _aliases(id: Id) -> Tuple[Id, ...]:
        """Keys that address the same record; digit strings and integers match."""
        if isinstance(id, str) and id.isdigit():
            return (id, int(id))
        if isinstance(id, int) and not isinstance(id, bool):
            return (id, str(id))
        return (id,)

    def _key(self, id: Id) -> Optional[Id]:
        """Find the store key for ``id``."""
        for alias in self._aliases(id):
            if alias in self.store:
                return alias
        return None

    def _not_found(self, id: Id, method: str) -> NotFound:
        return NotFound.create(
            f"No record found for id '{id}'",
            location=self.location,
            method=method,
            resource_id=id,
        )

    def _query(self, params: Params) -> Tuple[List[Dict[str, Any]], QueryFilters]:
        criteria, filters = filter_query(params.query)
        items = [item for item in self.store.values() if matches(item, criteria)]
        return sort_items(items, filters.sort), filters

    def _pagination_for(self, params: Params) -> Optional[PaginationOptions]:
        if params.paginate is False:
            return None
        if isinstance(params.paginate, PaginationOptions):
            return params.paginate
        return self.paginate

    def _output(self, item: Mapping[str, Any], filters: Optional[QueryFilters] = None) -> Dict[str, Any]:
        fields = filters.select if filters is not None else None
        return copy.deepcopy(select_fields(item, fields, self.id_field))

    def _select_ids(self, id: Optional[Id], params: Params, method: str) -> List[Id]:
        """Store keys addressed by ``id``, or by the query when ``id`` is None."""
        if id is None:
            items, _ = self._query(params)
            return [item[self.id_field] for item in items]

        key = self._key(id)
        if key is None:
            raise self._not_found(id, method)
        criteria, _ = filter_query(params.query)
        if not matches(self.store[key], criteria):
            raise self._not_found(id, method)
        return [key]

    def _check_data(self, data: Any, method: str) -> Dict[str, Any]:
        if not isinstance(data, Mapping):
            raise BadRequest.create(
                f"{method} expects a mapping, got {type(data).__name__}",
                location=self.location,
                method=method,
            )
        return copy.deepcopy(dict(data))

    # Operations

    async def find(self, params: Params) -> Union[List[Dict[str, Any]], Page]:
        items, filters = self._query(params)
        selected = [self._output(item, filters) for item in items]

        options = self._pagination_for(params)
        if options is None:
            start = filters.skip
            end = None if filters.limit is None else start + filters.limit
            return selected[start:end]

        return paginate(selected, filters, options)

    async def get(self, id: Id, params: Params) -> Dict[str, Any]:
        key = self._select_ids(id, params, 'get')[0]
        _, filters = filter_query(params.query)
        return self._output(self.store[key], filters)

    async def create(self, data: Any, params: Params) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        many = isinstance(data, list)
        async with self._lock:
            prepared = [self._check_data(item, 'create') for item in (data if many else [data])]
            reserved = self._check_new_ids(prepared)

            # Nothing is written until every item has passed the checks above
            created = []
            for item in prepared:
                if item.get(self.id_field) is None:
                    item[self.id_field] = self._next_id(reserved)
                self.store[item[self.id_field]] = item
                created.append(self._output(item))

        return created if many else created[0]

    def _check_new_ids(self, items: List[Dict[str, Any]]) -> Set[Id]:
        """Validate explicit ids against the store and each other.

        Returns:
            Every key the batch claims, so generated ids can avoid them

        Raises:
            BadRequest: If an id is not a string or number
            Conflict: If an id is already stored or repeats within the batch
        """
        claimed: Set[Id] = set()
        for item in items:
            id = item.get(self.id_field)
            if id is None:
                continue
            if not is_id(id):
                raise BadRequest.create(
                    f"'{self.id_field}' must be a string or a number, got {type(id).__name__}",
                    location=self.location,
                    method='create',
                )
            aliases = self._aliases(id)
            if self._key(id) is not None or claimed.intersection(aliases):
                raise Conflict.create(
                    f"A record with id '{id}' already exists",
                    location=self.location,
                    method='create',
                    resource_id=id,
                )
            claimed.update(aliases)
        return claimed

    async def update(self, id: Optional[Id], data: Any, params: Params) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        replacement = self._check_data(data, 'update')
        async with self._lock:
            keys = self._select_ids(id, params, 'update')
            results = []
            for key in keys:
                item = copy.deepcopy(replacement)
                item[self.id_field] = self.store[key][self.id_field]
                self.store[key] = item
                results.append(self._output(item))
        return results if id is None else results[0]

    async def patch(self, id: Optional[Id], data: Any, params: Params) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        changes = self._check_data(data, 'patch')
        changes.pop(self.id_field, None)
        async with self._lock:
            keys = self._select_ids(id, params, 'patch')
            results = []
            for key in keys:
                self.store[key].update(copy.deepcopy(changes))
                results.append(self._output(self.store[key]))
        return results if id is None else results[0]

    async def remove(self, id: Optional[Id], params: Params) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        async with self._lock:
            keys = self._select_ids(id, params, 'remove')
            results = [self._output(self.store.pop(key)) for key in keys]
        return results if id is None else results[0]
