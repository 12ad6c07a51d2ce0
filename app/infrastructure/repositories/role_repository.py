"""
SQLAlchemy Implementation of Role Repository.
"""

from typing import Optional

from app.domain.models.role import Role, RoleType
from app.domain.repositories.role_repository import RoleRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyRoleRepository(SQLAlchemyRepository[Role], RoleRepository):

    def get_by_name(self, name: RoleType) -> Optional[Role]:
        return self.db.query(Role).filter(Role.name == name).first()
