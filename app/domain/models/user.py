"""User domain model: maps to the 'app_users' table."""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", String(255), ForeignKey("app_users.keycloak_id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "app_users"

    keycloak_id = Column(String(255), primary_key=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
    roles = relationship("Role", secondary=user_roles, back_populates="users", lazy="selectin", collection_class=set)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name.value for role in self.roles)

    def __repr__(self):
        return f"<User {self.username}>"
