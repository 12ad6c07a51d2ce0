"""User service: mirrors provider identities into the local user table.

Synchronization is an idempotent upsert keyed by the provider subject:

* unknown subject: create the user, enabled, with the default USER role
* known subject: refresh username, email and names; roles and the enabled
  flag are left as they are

Every call writes the user row exactly once. A uniqueness violation (two
requests syncing the same subject at once) is retried once through the
update branch after re-reading the row.
"""

from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
    PreconditionViolationException,
)
from app.domain.models.role import DEFAULT_ROLE, RoleType
from app.domain.models.user import User
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import ExternalIdentity

logger = structlog.get_logger(__name__)


def identity_from_claims(claims: Mapping[str, Any]) -> ExternalIdentity:
    """Build an identity from token claims or an OIDC profile (same claim names)."""
    missing = [name for name in ("sub", "preferred_username", "email") if not claims.get(name)]
    if missing:
        raise BusinessRuleViolationException(
            "Identity claims required for synchronization are missing",
            details={"missing_claims": missing},
        )
    return ExternalIdentity(
        subject=claims["sub"],
        username=claims["preferred_username"],
        email=claims["email"],
        first_name=claims.get("given_name"),
        last_name=claims.get("family_name"),
    )


def _apply_profile(user: User, identity: ExternalIdentity) -> None:
    user.username = identity.username
    user.email = identity.email
    user.first_name = identity.first_name
    user.last_name = identity.last_name


def _new_user(role_repo: RoleRepository, identity: ExternalIdentity) -> User:
    default_role = role_repo.get_by_name(DEFAULT_ROLE)
    if default_role is None:
        raise PreconditionViolationException(
            f"Default role {DEFAULT_ROLE.value} is missing; roles were not seeded",
        )
    user = User(keycloak_id=identity.subject, enabled=True)
    _apply_profile(user, identity)
    user.roles.add(default_role)
    return user


def sync_user(user_repo: UserRepository, role_repo: RoleRepository, identity: ExternalIdentity) -> User:
    """Create or refresh the local user for ``identity`` and return it."""
    user = user_repo.get_by_id(identity.subject)
    created = user is None
    if created:
        user = _new_user(role_repo, identity)
    else:
        _apply_profile(user, identity)

    try:
        user = user_repo.save(user)
    except IntegrityError as e:
        user_repo.rollback()
        logger.warning("User sync conflict, retrying as update", user_id=identity.subject, error=str(e.orig))
        user = _retry_update(user_repo, identity)
        created = False

    logger.info("User synchronized", user_id=user.keycloak_id, created=created)
    return user


def _retry_update(user_repo: UserRepository, identity: ExternalIdentity) -> User:
    existing = user_repo.get_by_id(identity.subject)
    if existing is None:
        # The conflict was on username/email held by another subject
        raise ConflictException(
            "Username or email already belongs to another user",
            details={"user_id": identity.subject},
        )
    _apply_profile(existing, identity)
    try:
        return user_repo.save(existing)
    except IntegrityError as e:
        user_repo.rollback()
        raise ConflictException(
            "User synchronization failed after retry",
            details={"user_id": identity.subject},
        ) from e


def sync_user_from_claims(user_repo: UserRepository, role_repo: RoleRepository, claims: Mapping[str, Any]) -> User:
    return sync_user(user_repo, role_repo, identity_from_claims(claims))


def _load_user_and_role(user_repo: UserRepository, role_repo: RoleRepository, user_id: str, role_type: RoleType):
    user = user_repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException(f"User {user_id} not found", details={"user_id": user_id})
    role = role_repo.get_by_name(role_type)
    if role is None:
        raise EntityNotFoundException(f"Role {role_type.value} not found", details={"role": role_type.value})
    return user, role


def assign_role(user_repo: UserRepository, role_repo: RoleRepository, user_id: str, role_type: RoleType) -> User:
    """Grant ``role_type`` to a user. Granting a held role is a no-op."""
    user, role = _load_user_and_role(user_repo, role_repo, user_id, role_type)
    user.roles.add(role)
    user = user_repo.save(user)
    logger.info("Role assigned", user_id=user_id, role=role_type.value)
    return user


def remove_role(user_repo: UserRepository, role_repo: RoleRepository, user_id: str, role_type: RoleType) -> User:
    """Revoke ``role_type`` from a user. Revoking an unheld role is a no-op."""
    user, role = _load_user_and_role(user_repo, role_repo, user_id, role_type)
    user.roles.discard(role)
    user = user_repo.save(user)
    logger.info("Role removed", user_id=user_id, role=role_type.value)
    return user


def get_user(user_repo: UserRepository, user_id: str) -> Optional[User]:
    return user_repo.get_by_id(user_id)


def get_all_users(user_repo: UserRepository) -> List[User]:
    return user_repo.list_all()


def role_distribution(users: List[User]) -> Dict[str, int]:
    """Number of users holding each role, keyed by role name."""
    counts = Counter(role.name.value for user in users for role in user.roles)
    return dict(sorted(counts.items()))
