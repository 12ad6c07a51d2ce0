"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import TypeVar, List, Optional, Any, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic lookup/save operations."""

    def get_by_id(self, id: Any) -> Optional[T]:
        """Get a single entity by primary key."""
        ...

    def list_all(self) -> List[T]:
        """Full snapshot of the table (reporting only)."""
        ...

    def save(self, obj: T) -> T:
        """Insert or update an entity and return the persisted row."""
        ...

    def rollback(self) -> None:
        """Discard pending changes after a failed write."""
        ...
