"""Error taxonomy for services and the registry."""

from .errors import (
    BadRequest,
    BaseError,
    Conflict,
    ErrorContext,
    Forbidden,
    GeneralError,
    MethodNotAllowed,
    NotFound,
    ServiceError,
    convert_error,
)
from .models import ErrorContextData, ServiceErrorContext

__all__ = [
    "BaseError",
    "ErrorContext",
    "ErrorContextData",
    "ServiceError",
    "ServiceErrorContext",
    "BadRequest",
    "Forbidden",
    "NotFound",
    "MethodNotAllowed",
    "Conflict",
    "GeneralError",
    "convert_error",
]
