"""Error classes for services and the registry.

This module provides the error taxonomy used across resourcelib:

1. ``BaseError`` with structured context, cause tracking and serialization
2. ``ServiceError`` subclasses with an HTTP-like ``code`` so that a transport
   collaborator can translate them into protocol responses
3. ``convert_error`` for turning arbitrary exceptions into a ``ServiceError``
"""

import logging
import traceback
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Union

from .models import ErrorContextData, ServiceErrorContext

logger = logging.getLogger(__name__)


class ErrorContext:
    """Structured context attached to an error.

    Wraps an ``ErrorContextData`` model and keeps it serializable for logging.
    """

    def __init__(self, context_data: ErrorContextData):
        self._data = context_data

    @classmethod
    def create(
        cls, error_type: str, error_location: str, component: str, operation: str
    ) -> "ErrorContext":
        """Create a new error context.

        Args:
            error_type: Type of error
            error_location: Location in code
            component: Component raising the error
            operation: Operation being performed

        Returns:
            New ErrorContext instance
        """
        context_data = ErrorContextData(
            error_type=error_type,
            error_location=error_location,
            component=component,
            operation=operation,
        )
        return cls(context_data)

    @property
    def data(self) -> ErrorContextData:
        """Get the context data."""
        return self._data

    @property
    def timestamp(self) -> datetime:
        """Get the context creation timestamp."""
        return self._data.timestamp

    def __str__(self) -> str:
        return f"ErrorContext({self._data.model_dump()})"


class BaseError(Exception):
    """Base class for all resourcelib errors.

    Carries a message, a structured context and the optional exception that
    caused it.
    """

    def __init__(self, message: str, context: ErrorContext, cause: Optional[Exception] = None):
        """Initialize error.

        Args:
            message: Error message
            context: Required error context
            cause: Optional cause exception
        """
        self.message = message
        self.context = context
        self.cause = cause
        self.timestamp = datetime.now()
        self.traceback = self._capture_traceback()

        super().__init__(message)

    def _capture_traceback(self) -> str:
        """Capture the current traceback, if an exception is being handled."""
        if self.cause is None:
            return ""
        return "".join(
            traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Dictionary representation of error
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.data.model_dump(),
            "cause": str(self.cause) if self.cause else None,
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        cause_str = f" (caused by: {self.cause})" if self.cause else ""
        return f"{self.__class__.__name__}: {self.message}{cause_str}"


class ServiceError(BaseError):
    """Error raised by a service operation or by the registry.

    Subclasses set ``name`` and ``code``. Use ``create`` to build one without
    assembling the context by hand.
    """

    name: ClassVar[str] = "GeneralError"
    code: ClassVar[int] = 500

    def __init__(
        self,
        message: str,
        context: ErrorContext,
        service_context: Optional[ServiceErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize service error.

        Args:
            message: Error message
            context: Required error context
            service_context: Location, method and id the error relates to
            cause: Optional cause exception
        """
        self.service_context = service_context or ServiceErrorContext()
        super().__init__(message, context, cause)

    @classmethod
    def create(
        cls,
        message: str,
        *,
        location: Optional[str] = None,
        method: Optional[str] = None,
        resource_id: Optional[Union[str, int, float]] = None,
        component: str = "service",
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> "ServiceError":
        """Build an error of this class with context filled in.

        Args:
            message: Error message
            location: Service location, if known
            method: Service method, if known
            resource_id: Identifier addressed by the call
            component: Component raising the error
            data: Extra machine-readable detail
            cause: Optional cause exception

        Returns:
            New error instance
        """
        operation = method or "lookup"
        context = ErrorContext.create(
            error_type=cls.name,
            error_location=f"{location or component}.{operation}",
            component=component,
            operation=operation,
        )
        service_context = ServiceErrorContext(
            location=location,
            method=method,
            resource_id=resource_id,
            data=data or {},
        )
        return cls(message, context, service_context=service_context, cause=cause)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["name"] = self.name
        result["code"] = self.code
        result["service"] = self.service_context.model_dump()
        return result


class BadRequest(ServiceError):
    """Malformed data, query or identifier."""

    name = "BadRequest"
    code = 400


class Forbidden(ServiceError):
    """Policy denial. Raised by collaborators, passed through by the core."""

    name = "Forbidden"
    code = 403


class NotFound(ServiceError):
    """Unknown location or unknown resource id."""

    name = "NotFound"
    code = 404


class MethodNotAllowed(ServiceError):
    """The service does not implement the requested operation."""

    name = "MethodNotAllowed"
    code = 405


class Conflict(ServiceError):
    """Duplicate registration of a location."""

    name = "Conflict"
    code = 409


class GeneralError(ServiceError):
    """Unexpected failure inside a service."""

    name = "GeneralError"
    code = 500


def convert_error(error: Exception, location: Optional[str] = None, method: Optional[str] = None) -> ServiceError:
    """Return ``error`` as a ServiceError.

    ServiceErrors are returned unchanged. Anything else becomes a
    ``GeneralError`` with the original exception as its cause.

    Args:
        error: Exception to convert
        location: Service location the error came from
        method: Service method the error came from

    Returns:
        A ServiceError instance
    """
    if isinstance(error, ServiceError):
        return error

    logger.debug(f"Converting {type(error).__name__} from {location}.{method} to GeneralError")
    return GeneralError.create(
        str(error) or type(error).__name__,
        location=location,
        method=method,
        cause=error,
    )
