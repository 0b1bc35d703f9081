"""Per-call parameters passed to every service operation.

``Params`` is built fresh for every call and is immutable afterwards. The
``query`` mapping is opaque to the core: services decide what it means, with
the reserved ``$limit``/``$skip``/``$sort``/``$select`` keys understood by the
helpers in ``resourcelib.services.pagination``.
"""

from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from resourcelib.core.errors import BadRequest
from resourcelib.core.models import StrictBaseModel


class PaginationOptions(StrictBaseModel):
    """Page size policy: ``default`` when the caller asks for none, capped at ``max``."""

    default: int = Field(..., gt=0, description="Page size applied when no $limit is given")
    max: int = Field(..., gt=0, description="Upper bound for any requested $limit")

    @model_validator(mode='after')
    def validate_bounds(self) -> 'PaginationOptions':
        if self.default > self.max:
            raise ValueError(f"default ({self.default}) must not exceed max ({self.max})")
        return self


class Params(BaseModel):
    """Query and pagination intent for a single service call.

    Attributes:
        query: Caller-supplied filter/sort/select criteria
        paginate: ``False`` disables pagination for this call, a
            ``PaginationOptions`` overrides the service policy and ``None``
            keeps the service policy
        provider: Name of the transport that issued the call, ``None`` for
            internal calls

    Extra keys are kept as-is so collaborators can attach their own data.
    """

    model_config = ConfigDict(frozen=True, extra="allow", arbitrary_types_allowed=True)

    query: Dict[str, Any] = Field(default_factory=dict)
    paginate: Optional[Union[Literal[False], PaginationOptions]] = None
    provider: Optional[str] = None

    @field_validator('query', mode='before')
    @classmethod
    def validate_query(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError(f"query must be a mapping, got {type(v).__name__}")
        return dict(v)

    @field_validator('paginate', mode='before')
    @classmethod
    def validate_paginate(cls, v: Any) -> Any:
        if v is True:
            raise ValueError("paginate must be False or pagination options, not True")
        if isinstance(v, Mapping):
            return PaginationOptions(**v)
        return v

    @property
    def pagination_disabled(self) -> bool:
        return self.paginate is False


ParamsLike = Union[Params, Mapping[str, Any], None]


def normalize_params(params: ParamsLike) -> Params:
    """Coerce ``params`` into a ``Params`` instance.

    Args:
        params: ``None``, a mapping or an existing ``Params``

    Returns:
        A Params instance; existing instances are returned unchanged

    Raises:
        BadRequest: If the value cannot be interpreted as params
    """
    if params is None:
        return Params()
    if isinstance(params, Params):
        return params
    if not isinstance(params, Mapping):
        raise BadRequest.create(f"Params must be a mapping, got {type(params).__name__}", component="params")
    try:
        return Params(**params)
    except (ValidationError, TypeError) as e:
        raise BadRequest.create(f"Invalid params: {e}", component="params", cause=e) from e
