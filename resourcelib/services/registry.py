"""Service registry.

Maps locations to ``ServiceWrapper`` instances in registration order.
Registering a location twice is rejected with ``Conflict``; ``update`` is the
explicit way to replace a binding.
"""

import logging
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Type

from resourcelib.core.errors import BadRequest, Conflict, NotFound
from resourcelib.core.registry.registry import BaseRegistry

from .base import ServiceMethod
from .wrapper import ServiceWrapper

logger = logging.getLogger(__name__)


def strip_slashes(location: str) -> str:
    """Normalize a location: ``"/users/"`` and ``"users"`` are the same key.

    Raises:
        BadRequest: If the location is not a string or is empty
    """
    if not isinstance(location, str):
        raise BadRequest.create(f"Location must be a string, got {type(location).__name__}", component="registry")
    stripped = location.strip('/')
    if not stripped:
        raise BadRequest.create("Location must not be empty", component="registry")
    return stripped


class ServiceAccessor(Mapping[str, ServiceWrapper]):
    """Read-only live view of a registry, keyed by location.

    Handed to service factories so that a service can reach its siblings
    without caring about registration order. Attribute access
    (``services.users``) is a shortcut that cannot reach locations named
    like a ``Mapping`` method (``get``, ``keys``, ``items``, ``values``);
    item access (``services["get"]``) always works.
    """

    def __init__(self, registry: 'ServiceRegistry'):
        self._registry = registry

    def __getitem__(self, location: str) -> ServiceWrapper:
        try:
            return self._registry.get(location)
        except NotFound:
            raise KeyError(location) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._registry.list())

    def __len__(self) -> int:
        return len(self._registry.list())

    def __contains__(self, location: object) -> bool:
        return isinstance(location, str) and self._registry.contains(location)

    def __getattr__(self, name: str) -> ServiceWrapper:
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._registry.get(name)
        except (NotFound, BadRequest):
            raise AttributeError(name) from None


class ServiceRegistry(BaseRegistry[ServiceWrapper]):
    """Registry of services keyed by location."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._services: Dict[str, ServiceWrapper] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def _wrap(self, location: str, obj: Any, methods: Optional[ServiceMethod]) -> ServiceWrapper:
        if isinstance(obj, ServiceWrapper):
            if obj.location != location:
                raise BadRequest.create(
                    f"Service is already registered at '{obj.location}'",
                    location=location,
                    component="registry",
                )
            return obj
        return ServiceWrapper(obj, location, methods=methods)

    def register(self, name: str, obj: Any, methods: Optional[ServiceMethod] = None, **metadata: Any) -> ServiceWrapper:
        """Register ``obj`` at location ``name``.

        Args:
            name: Location of the service
            obj: Service object (or a wrapper created for this location)
            methods: Optional explicit capability set
            **metadata: Registration options, kept for ``list`` filtering

        Returns:
            The wrapper stored for the location

        Raises:
            Conflict: If the location is already registered
            BadRequest: If the location or service is invalid
        """
        location = strip_slashes(name)
        with self._lock:
            if location in self._services:
                raise Conflict.create(
                    f"A service is already registered at '{location}'",
                    location=location,
                    component="registry",
                )
            wrapper = self._wrap(location, obj, methods)
            self._services[location] = wrapper
            self._metadata[location] = dict(metadata)

        logger.info(f"Registered service at '{location}' (methods: {', '.join(wrapper.methods.names())})")
        return wrapper

    def get(self, name: str, expected_type: Optional[Type] = None) -> ServiceWrapper:
        """Return the wrapper at location ``name``.

        Args:
            name: Location of the service
            expected_type: Optional type the wrapped service must be an instance of

        Raises:
            NotFound: If nothing is registered at the location
            TypeError: If the wrapped service is not an ``expected_type``
        """
        location = strip_slashes(name)
        with self._lock:
            wrapper = self._services.get(location)
        if wrapper is None:
            raise NotFound.create(f"No service registered at '{location}'", location=location, component="registry")

        if expected_type is not None and not isinstance(wrapper.service, expected_type):
            raise TypeError(
                f"Service at '{location}' is of type {type(wrapper.service).__name__}, expected {expected_type.__name__}"
            )
        return wrapper

    def contains(self, name: str) -> bool:
        try:
            location = strip_slashes(name)
        except BadRequest:
            return False
        with self._lock:
            return location in self._services

    def list(self, filter_criteria: Optional[Dict[str, Any]] = None) -> List[str]:
        """Locations in registration order, optionally filtered by registration options."""
        with self._lock:
            if filter_criteria is None:
                return list(self._services.keys())
            return [
                location
                for location, metadata in self._metadata.items()
                if all(key in metadata and metadata[key] == value for key, value in filter_criteria.items())
            ]

    def locations(self) -> List[str]:
        """Registered locations in registration order."""
        return self.list()

    def wrappers(self) -> List[ServiceWrapper]:
        with self._lock:
            return list(self._services.values())

    def get_metadata(self, name: str) -> Dict[str, Any]:
        """Registration options stored for a location."""
        location = strip_slashes(name)
        with self._lock:
            if location not in self._metadata:
                raise NotFound.create(f"No service registered at '{location}'", location=location, component="registry")
            return dict(self._metadata[location])

    def clear(self) -> None:
        with self._lock:
            for wrapper in self._services.values():
                wrapper.off()
            self._services.clear()
            self._metadata.clear()
        logger.info("Cleared service registry")

    def remove(self, name: str) -> bool:
        """De-register a location and drop its listeners."""
        location = strip_slashes(name)
        with self._lock:
            wrapper = self._services.pop(location, None)
            self._metadata.pop(location, None)
        if wrapper is None:
            return False
        wrapper.off()
        logger.info(f"Removed service at '{location}'")
        return True

    def update(self, name: str, obj: Any, methods: Optional[ServiceMethod] = None, **metadata: Any) -> bool:
        """Replace the binding at ``name``, registering it if absent.

        The new wrapper is built before anything changes, so a service that
        fails to wrap leaves the existing binding and its listeners intact.

        Returns:
            True if a binding was replaced, False if the location was new
        """
        location = strip_slashes(name)
        wrapper = self._wrap(location, obj, methods)
        with self._lock:
            previous = self._services.get(location)
            self._services[location] = wrapper
            self._metadata[location] = dict(metadata)

        if previous is None:
            logger.info(f"Registered service at '{location}' (methods: {', '.join(wrapper.methods.names())})")
            return False
        if previous is not wrapper:
            previous.off()
        logger.info(f"Replaced service at '{location}' (methods: {', '.join(wrapper.methods.names())})")
        return True

    def accessor(self) -> ServiceAccessor:
        return ServiceAccessor(self)
