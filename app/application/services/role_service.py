"""Role service: bootstrap seeding and role listing."""

from typing import List

import structlog

from app.domain.models.role import Role, RoleType
from app.domain.repositories.role_repository import RoleRepository

logger = structlog.get_logger(__name__)


def seed_default_roles(repo: RoleRepository) -> List[Role]:
    """Ensure one row per RoleType exists. Existing rows are left untouched."""
    logger.info("Initializing default roles...")
    created = []
    for role_type in RoleType:
        if repo.get_by_name(role_type) is None:
            role = repo.save(Role(name=role_type, description=f"Default {role_type.display_name} role"))
            created.append(role)
            logger.info("Created role", role=role_type.value)
    logger.info("Role initialization completed", created=len(created))
    return created


def get_all_roles(repo: RoleRepository) -> List[Role]:
    return repo.list_all()
