"""Role domain model: maps to the 'roles' table."""

import enum

from sqlalchemy import Column, Integer, String, Enum
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


class RoleType(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"
    GUEST = "GUEST"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    RoleType.ADMIN: "Administrator",
    RoleType.MANAGER: "Manager",
    RoleType.USER: "Regular User",
    RoleType.GUEST: "Guest User",
}

DEFAULT_ROLE = RoleType.USER


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Enum(RoleType, name="role_type"), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    # Derived from the join table; only User owns the relation
    users = relationship("User", secondary="user_roles", back_populates="roles", viewonly=True)

    def __repr__(self):
        return f"<Role {self.name.value}>"
