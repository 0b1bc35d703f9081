from .registry import BaseRegistry

__all__ = ["BaseRegistry"]
