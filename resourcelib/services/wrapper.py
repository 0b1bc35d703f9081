"""Registered form of a service.

``ServiceWrapper`` is what the registry stores and what
``Application.service(location)`` returns. It

1. checks the capability set before dispatching an operation
2. normalizes params and validates identifiers and data
3. returns a task for every call and feeds an optional legacy callback
4. emits ``created``/``updated``/``patched``/``removed`` after successful
   mutations through its own ``EventEmitter``

Any attribute that is not part of this surface is looked up on the wrapped
service, so service-specific helpers stay reachable.
"""

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Union

from resourcelib.core.errors import BadRequest, MethodNotAllowed

from .base import EVENTS, Id, ServiceMethod, detect_methods, is_id
from .completion import Callback, complete
from .events import EventEmitter, FilterPredicate, Listener
from .pagination import Page
from .params import Params, ParamsLike, normalize_params

if TYPE_CHECKING:
    from resourcelib.application import Application

logger = logging.getLogger(__name__)

NullableId = Optional[Id]


class ServiceWrapper:
    """A service bound to a location, with capabilities and event addons."""

    def __init__(self, service: Any, location: str, methods: Optional[ServiceMethod] = None):
        """Wrap ``service``.

        Args:
            service: Object implementing some of the six operations
            location: Location the service is registered at
            methods: Explicit capability set; detected from ``service`` when omitted

        Raises:
            BadRequest: If the service implements no operation at all
        """
        self.service = service
        self.location = location
        self.methods = methods if methods is not None else detect_methods(service)
        if self.methods == ServiceMethod.NONE:
            raise BadRequest.create(
                f"Object registered at '{location}' implements none of {', '.join(ServiceMethod.ALL.names())}",
                location=location,
                component="registry",
            )
        self.events = EventEmitter(name=location)
        self.initialized = False

    def __repr__(self) -> str:
        return f"ServiceWrapper(location='{self.location}', methods={self.methods.names()}, service={type(self.service).__name__})"

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes the wrapper itself does not define
        if name == 'service':
            raise AttributeError(name)
        return getattr(self.service, name)

    def supports(self, method: str) -> bool:
        return method in self.methods.names()

    # Lifecycle

    def setup(self, app: 'Application') -> bool:
        """Run the service's ``setup(app, location)`` hook once.

        Returns:
            True if the hook ran (or there was none) during this call, False
            if the service was already initialized

        Raises:
            TypeError: If the hook returns an awaitable
        """
        if self.initialized:
            return False

        hook = getattr(self.service, 'setup', None)
        if callable(hook):
            result = hook(app, self.location)
            if inspect.isawaitable(result):
                if asyncio.iscoroutine(result):
                    result.close()
                raise TypeError(
                    f"setup hook of service at '{self.location}' must be synchronous"
                )
            logger.info(f"Set up service at '{self.location}'")

        self.initialized = True
        return True

    # Event addons

    def on(self, event: str, listener: Listener, connection: Any = None) -> 'ServiceWrapper':
        self.events.on(event, listener, connection)
        return self

    def once(self, event: str, listener: Listener, connection: Any = None) -> 'ServiceWrapper':
        self.events.once(event, listener, connection)
        return self

    def off(self, event: Optional[str] = None, listener: Optional[Listener] = None) -> 'ServiceWrapper':
        self.events.off(event, listener)
        return self

    def emit(self, event: str, data: Any) -> int:
        return self.events.emit(event, data)

    def listeners(self, event: str) -> List[Listener]:
        return self.events.listeners(event)

    def filter(self, event_or_predicate: Union[str, FilterPredicate], predicate: Optional[FilterPredicate] = None) -> 'ServiceWrapper':
        """Restrict event delivery.

        ``filter(predicate)`` applies to every event, ``filter(event,
        predicate)`` to one. The predicate is called as
        ``predicate(data, connection)`` for each listener: a falsy result
        drops delivery, ``True`` keeps the data, anything else replaces it.

        Returns:
            This wrapper, for chaining
        """
        if isinstance(event_or_predicate, str):
            if predicate is None:
                raise TypeError("filter(event, predicate) requires a predicate")
            self.events.add_filter(predicate, event=event_or_predicate)
        else:
            self.events.add_filter(event_or_predicate)
        return self

    # Operations

    def find(self, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Resources matching ``params.query``: a list, or a ``Page`` when paginated."""
        return self._call('find', None, None, params, callback)

    def get(self, id: Id, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Exactly one resource; rejects with NotFound when absent."""
        return self._call('get', id, None, params, callback)

    def create(self, data: Any, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Create one resource, or several when ``data`` is a list."""
        return self._call('create', None, data, params, callback)

    def update(self, id: NullableId, data: Any, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Replace a resource, or every match of the query when ``id`` is None."""
        return self._call('update', id, data, params, callback)

    def patch(self, id: NullableId, data: Any, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Merge into a resource, or into every match of the query when ``id`` is None."""
        return self._call('patch', id, data, params, callback)

    def remove(self, id: NullableId, params: ParamsLike = None, *, callback: Optional[Callback] = None) -> 'asyncio.Task[Any]':
        """Delete a resource, or every match of the query when ``id`` is None."""
        return self._call('remove', id, None, params, callback)

    def _call(self, method: str, id: NullableId, data: Any, params: ParamsLike, callback: Optional[Callback]) -> 'asyncio.Task[Any]':
        task = complete(
            self._dispatch(method, id, data, params),
            callback,
            label=f"{self.location}.{method}",
        )
        if method in EVENTS:
            task.add_done_callback(lambda settled: self._on_settled(EVENTS[method], settled))
        return task

    async def _dispatch(self, method: str, id: NullableId, data: Any, raw_params: ParamsLike) -> Any:
        if not self.supports(method):
            raise MethodNotAllowed.create(
                f"Method '{method}' is not supported by service at '{self.location}'",
                location=self.location,
                method=method,
            )

        params = normalize_params(raw_params)
        self._validate(method, id, data)

        handler = getattr(self.service, method)
        logger.debug(f"Dispatching {self.location}.{method} id={id!r}")

        try:
            if method == 'find':
                result = handler(params)
            elif method == 'get':
                result = handler(id, params)
            elif method == 'create':
                result = handler(data, params)
            elif method in ('update', 'patch'):
                result = handler(id, data, params)
            else:
                result = handler(id, params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug(f"{self.location}.{method} failed: {type(e).__name__}: {e}")
            raise

        if method == 'find':
            return self._shape_find_result(result, params)
        return result

    def _validate(self, method: str, id: NullableId, data: Any) -> None:
        if method == 'get' and not is_id(id):
            raise BadRequest.create(
                f"get requires a string or numeric id, got {type(id).__name__}",
                location=self.location,
                method=method,
            )
        if method in ('update', 'patch', 'remove') and id is not None and not is_id(id):
            raise BadRequest.create(
                f"{method} requires a string or numeric id or None, got {type(id).__name__}",
                location=self.location,
                method=method,
            )
        if method in ('create', 'update', 'patch') and data is None:
            raise BadRequest.create(
                f"{method} requires data",
                location=self.location,
                method=method,
                resource_id=id,
            )

    def _shape_find_result(self, result: Any, params: Params) -> Any:
        if params.pagination_disabled and isinstance(result, Page):
            logger.debug(f"{self.location}.find returned a Page with pagination disabled, unwrapping")
            return list(result.data)
        return result

    def _on_settled(self, event: str, task: 'asyncio.Task[Any]') -> None:
        # Runs as a done-callback, so the caller's own wake-up is already queued
        if task.cancelled() or task.exception() is not None:
            return
        self._notify(event, task.result())

    def _notify(self, event: str, result: Any) -> None:
        items = result if isinstance(result, list) else [result]
        for item in items:
            self.events.emit_soon(event, item)
