"""Strict Pydantic base models shared by all resourcelib value objects.

Parameters, pagination envelopes, settings fragments and error contexts all
derive from these bases so that validation behaves the same everywhere.
"""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Immutable model with strict validation.

    - strict=True: no type coercion, inputs must match exact types
    - extra="forbid": unknown fields are rejected
    - frozen=True: instances cannot be changed after construction
    """

    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        validate_assignment=True,
        frozen=True,
        validate_default=True,
        use_enum_values=False,
        arbitrary_types_allowed=False,
    )


__all__ = [
    "StrictBaseModel",
]
