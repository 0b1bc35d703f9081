"""Service contract.

A service is any object implementing some subset of the six operations::

    async def find(self, params)
    async def get(self, id, params)
    async def create(self, data, params)
    async def update(self, id, data, params)
    async def patch(self, id, data, params)
    async def remove(self, id, params)

plus an optional ``setup(app, location)`` hook. Which operations a service
implements is recorded once, at registration, as a ``ServiceMethod`` flag.
Services may declare it explicitly through a ``methods`` attribute; otherwise
it is read off the callables the object has.
"""

import logging
from enum import Flag
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, List, Optional, Union

from resourcelib.core.errors import BadRequest

if TYPE_CHECKING:
    from resourcelib.application import Application

logger = logging.getLogger(__name__)


class ServiceMethod(Flag):
    """Capability set of a service."""

    NONE = 0
    FIND = 1
    GET = 2
    CREATE = 4
    UPDATE = 8
    PATCH = 16
    REMOVE = 32
    ALL = FIND | GET | CREATE | UPDATE | PATCH | REMOVE

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'ServiceMethod':
        """Build a flag from operation names such as ``["find", "get"]``."""
        result = cls.NONE
        if isinstance(names, str):
            names = [names]
        for name in names:
            if not isinstance(name, str) or name.lower() not in METHOD_NAMES:
                raise ValueError(f"Unknown service method '{name}'")
            result |= cls[name.upper()]
        return result

    def names(self) -> List[str]:
        """Operation names in this set, in canonical order."""
        return [name for name in METHOD_NAMES if ServiceMethod[name.upper()] in self]


METHOD_NAMES = ('find', 'get', 'create', 'update', 'patch', 'remove')

# Mutating operation -> event emitted after it succeeds
EVENTS = {
    'create': 'created',
    'update': 'updated',
    'patch': 'patched',
    'remove': 'removed',
}

Id = Union[str, int, float]

MethodsDeclaration = Union[ServiceMethod, Iterable[str]]


def is_id(value: Any) -> bool:
    """Return True if ``value`` can identify a resource: a string or a number, never a bool."""
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def detect_methods(service: Any) -> ServiceMethod:
    """Determine the capability set of ``service``.

    An explicit ``methods`` attribute wins. Otherwise every operation name
    bound to a callable counts as implemented.

    Raises:
        BadRequest: If the declaration is invalid or names a method the
            service does not have
    """
    declared = getattr(service, 'methods', None)
    if declared is not None:
        try:
            methods = declared if isinstance(declared, ServiceMethod) else ServiceMethod.from_names(declared)
        except (TypeError, ValueError) as e:
            raise BadRequest.create(f"Invalid methods declaration: {e}", component="service", cause=e) from e

        missing = [name for name in methods.names() if not callable(getattr(service, name, None))]
        if missing:
            raise BadRequest.create(
                f"Service declares methods it does not implement: {', '.join(missing)}",
                component="service",
                data={"missing": missing},
            )
        return methods

    methods = ServiceMethod.NONE
    for name in METHOD_NAMES:
        if callable(getattr(service, name, None)):
            methods |= ServiceMethod[name.upper()]
    return methods


class Service:
    """Convenience base class for services.

    Subclasses implement any of the six operations. The base keeps track of
    the application and location it was set up with.
    """

    methods: ClassVar[Optional[MethodsDeclaration]] = None

    app: Optional['Application'] = None
    location: Optional[str] = None

    def setup(self, app: 'Application', location: str) -> None:
        """Remember the owning application and location."""
        self.app = app
        self.location = location
        logger.debug(f"{type(self).__name__} set up at '{location}'")
