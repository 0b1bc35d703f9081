"""Core foundations: strict models, errors, settings and the registry contract."""

from .models import StrictBaseModel

__all__ = [
    "StrictBaseModel",
]
