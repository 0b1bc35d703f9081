"""Application facade.

The ``Application`` owns a ``ServiceRegistry`` and drives the service
lifecycle::

    unregistered --service()/use()--> registered --setup()--> initialized

Transport collaborators hook in through ``providers``: each provider is
called with ``(location, wrapper, options)`` whenever a service is
registered, and is free to mount routes or read ``options``. The core never
interprets ``options`` itself.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union, overload

from resourcelib.core.errors import BadRequest
from resourcelib.core.settings.settings import ResourcelibSettings, load_settings
from resourcelib.services.base import ServiceMethod
from resourcelib.services.registry import ServiceAccessor, ServiceRegistry
from resourcelib.services.wrapper import ServiceWrapper

logger = logging.getLogger(__name__)

T = TypeVar('T')

Provider = Callable[[str, ServiceWrapper, Dict[str, Any]], Any]


class Application:
    """Registry of named services plus the lifecycle around it."""

    def __init__(self, settings: Optional[ResourcelibSettings] = None):
        """Initialize application.

        Args:
            settings: Optional settings; loaded from the environment when omitted
        """
        self.settings = settings or ResourcelibSettings()
        self.registry = ServiceRegistry()
        self.providers: List[Provider] = []
        self._is_setup = False

    @property
    def is_setup(self) -> bool:
        return self._is_setup

    @property
    def services(self) -> ServiceAccessor:
        """Live read-only mapping of location to service."""
        return self.registry.accessor()

    @overload
    def service(self, location: str) -> ServiceWrapper: ...

    @overload
    def service(self, location: str, service: Any, options: Optional[Dict[str, Any]] = None) -> ServiceWrapper: ...

    @overload
    def service(self, location: Callable[[ServiceAccessor], T]) -> T: ...

    def service(self, location: Any, service: Any = None, options: Optional[Dict[str, Any]] = None) -> Any:
        """Look up, register or compose services.

        - ``service(location)`` returns the service at ``location``
        - ``service(location, service, options)`` registers ``service``
        - ``service(factory)`` calls ``factory`` with the live accessor of
          all registered services and returns its result

        Raises:
            NotFound: On lookup of an unregistered location
            Conflict: On registration of an already-registered location
            BadRequest: If the arguments fit none of the forms above
        """
        if isinstance(location, str):
            if service is None:
                return self.registry.get(location)
            return self._register(location, service, options)

        if callable(location):
            if service is not None:
                raise BadRequest.create("service(factory) takes no further arguments", component="application")
            return location(self.services)

        raise BadRequest.create(
            f"service() expects a location or a factory, got {type(location).__name__}",
            component="application",
        )

    def use(self, location: str, service: Any, options: Optional[Dict[str, Any]] = None) -> 'Application':
        """Register ``service`` at ``location`` and return the application."""
        self._register(location, service, options)
        return self

    def _register(self, location: str, service: Any, options: Optional[Dict[str, Any]]) -> ServiceWrapper:
        options = dict(options or {})
        methods = options.get('methods')
        if methods is not None and not isinstance(methods, ServiceMethod):
            try:
                methods = ServiceMethod.from_names(methods)
            except (TypeError, ValueError) as e:
                raise BadRequest.create(f"Invalid methods option: {e}", location=location, component="application", cause=e) from e

        metadata = {key: value for key, value in options.items() if key != 'methods'}
        wrapper = self.registry.register(location, service, methods=methods, **metadata)

        try:
            for provider in self.providers:
                provider(wrapper.location, wrapper, options)

            if self._is_setup:
                wrapper.setup(self)
        except Exception as e:
            # Providers notified before the failure are not told about the rollback
            logger.error(f"Registration of '{wrapper.location}' failed, removing it: {e}")
            self.registry.remove(wrapper.location)
            raise

        return wrapper

    def setup(self) -> 'Application':
        """Run every service's setup hook once, in registration order.

        Calling this again does not re-run hooks.
        """
        if self._is_setup:
            logger.debug("Application already set up")
            return self

        for wrapper in self.registry.wrappers():
            wrapper.setup(self)

        self._is_setup = True
        logger.info(f"Application set up with {len(self.registry.list())} services")
        return self

    def configure(self, callback: Callable[['Application'], Any]) -> 'Application':
        """Call ``callback(app)`` for plugin-style initialization."""
        if not callable(callback):
            raise TypeError(f"configure() expects a callable, got {type(callback).__name__}")
        callback(self)
        return self


def create_app(
    settings: Optional[ResourcelibSettings] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> Application:
    """Create an application from settings or a configuration file."""
    if settings is None:
        settings = load_settings(config_file)
    return Application(settings)
