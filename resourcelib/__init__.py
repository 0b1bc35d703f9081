"""resourcelib.

Expose arbitrary backing resources through one small vocabulary of
operations: ``find``, ``get``, ``create``, ``update``, ``patch`` and
``remove``.

Key features:
1. Services implement any subset of the operations; the set is recorded at
   registration and checked before every call
2. An ``Application`` registry with ``setup`` lifecycle and provider hooks
   for transport collaborators
3. Event emission after every successful mutation, with per-listener filters
4. Pagination envelopes and query helpers shared by in-memory services
"""

from resourcelib.application import Application, create_app
from resourcelib.core.errors import (
    BadRequest,
    BaseError,
    Conflict,
    Forbidden,
    GeneralError,
    MethodNotAllowed,
    NotFound,
    ServiceError,
    convert_error,
)
from resourcelib.core.logging import configure_logging
from resourcelib.core.settings import ResourcelibSettings, load_settings
from resourcelib.services import (
    MemoryService,
    Page,
    PaginationOptions,
    Params,
    Service,
    ServiceMethod,
    ServiceWrapper,
)

__version__ = "0.1.0"

__all__ = [
    # Application
    "Application",
    "create_app",

    # Services
    "Service",
    "ServiceMethod",
    "ServiceWrapper",
    "MemoryService",
    "Params",
    "PaginationOptions",
    "Page",

    # Errors
    "BaseError",
    "ServiceError",
    "BadRequest",
    "Forbidden",
    "NotFound",
    "MethodNotAllowed",
    "Conflict",
    "GeneralError",
    "convert_error",

    # Configuration
    "ResourcelibSettings",
    "load_settings",
    "configure_logging",
]
