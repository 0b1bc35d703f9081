"""Base registry interface.

This module defines the abstract base class for name-keyed registries,
providing a common interface for registration, retrieval and removal.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

T = TypeVar('T')


class BaseRegistry(ABC, Generic[T]):
    """Abstract base class for all registry types.

    Establishes one pattern for registration, retrieval and management
    operations regardless of what is being registered.
    """

    @abstractmethod
    def register(self, name: str, obj: T, **metadata: Any) -> T:
        """Register an object with the registry.

        Args:
            name: Unique name for the object
            obj: The object to register
            **metadata: Additional metadata about the object

        Returns:
            The registered object as stored by the registry
        """

    @abstractmethod
    def get(self, name: str, expected_type: Optional[Type] = None) -> T:
        """Get an object by name with optional type checking.

        Args:
            name: Name of the object to retrieve
            expected_type: Optional type for type checking

        Returns:
            The registered object

        Raises:
            TypeError: If the object doesn't match the expected type
        """

    @abstractmethod
    def contains(self, name: str) -> bool:
        """Check if an object exists in the registry."""

    @abstractmethod
    def list(self, filter_criteria: Optional[Dict[str, Any]] = None) -> List[str]:
        """List registered names matching criteria.

        Args:
            filter_criteria: Optional metadata criteria to filter results

        Returns:
            Names in registration order
        """

    @abstractmethod
    def clear(self) -> None:
        """Clear all registrations from the registry."""

    @abstractmethod
    def remove(self, name: str) -> bool:
        """Remove a specific registration.

        Returns:
            True if the object was found and removed, False if not found
        """

    @abstractmethod
    def update(self, name: str, obj: T, **metadata: Any) -> bool:
        """Update or replace an existing registration.

        Returns:
            True if an existing object was replaced, False if this was a new registration
        """
