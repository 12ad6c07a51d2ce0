"""
Role Repository Interface.
"""

from typing import Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.role import Role, RoleType


class RoleRepository(BaseRepository[Role]):
    """Interface for Role-specific lookups."""

    def get_by_name(self, name: RoleType) -> Optional[Role]:
        ...
