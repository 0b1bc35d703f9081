"""Strict Pydantic models for error context."""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import Field

from resourcelib.core.models import StrictBaseModel


class ErrorContextData(StrictBaseModel):
    """Where and during which operation an error was raised."""

    error_type: str = Field(..., description="Type of error")
    error_location: str = Field(..., description="Location in code where error occurred")
    timestamp: datetime = Field(default_factory=datetime.now, description="When error occurred")

    component: str = Field(..., description="Component that raised the error")
    operation: str = Field(..., description="Operation being performed")


class ServiceErrorContext(StrictBaseModel):
    """Service-level detail attached to every ServiceError."""

    location: Optional[str] = Field(default=None, description="Location of the service, if known")
    method: Optional[str] = Field(default=None, description="Service method being invoked")
    resource_id: Optional[Union[str, int, float]] = Field(default=None, description="Identifier addressed by the call")
    data: Dict[str, Any] = Field(default_factory=dict, description="Extra machine-readable detail")
