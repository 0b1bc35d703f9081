"""Service contract, registry, events and pagination."""

from .base import EVENTS, METHOD_NAMES, Service, ServiceMethod, detect_methods
from .events import EventEmitter
from .memory import MemoryService
from .pagination import Page, QueryFilters, filter_query, is_page, matches, paginate
from .params import PaginationOptions, Params, normalize_params
from .registry import ServiceAccessor, ServiceRegistry, strip_slashes
from .wrapper import ServiceWrapper

__all__ = [
    "EVENTS",
    "METHOD_NAMES",
    "Service",
    "ServiceMethod",
    "detect_methods",
    "EventEmitter",
    "MemoryService",
    "Page",
    "QueryFilters",
    "filter_query",
    "is_page",
    "matches",
    "paginate",
    "PaginationOptions",
    "Params",
    "normalize_params",
    "ServiceAccessor",
    "ServiceRegistry",
    "strip_slashes",
    "ServiceWrapper",
]
