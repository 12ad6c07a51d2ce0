"""Pydantic schemas for User and Role."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.domain.models.role import Role
from app.domain.models.user import User


class UserRead(BaseModel):
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    enabled: bool
    roles: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_user(cls, user: User) -> "UserRead":
        return cls(
            id=user.keycloak_id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            enabled=user.enabled,
            roles=user.role_names,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RoleRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    user_count: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_role(cls, role: Role) -> "RoleRead":
        return cls(
            id=role.id,
            name=role.name.value,
            description=role.description,
            user_count=len(role.users),
        )
