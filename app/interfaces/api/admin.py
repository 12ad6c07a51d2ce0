"""Admin API routes: system overview, roles and session audit."""

from datetime import datetime
from typing import Any, Dict, List

import pytz
import structlog
from fastapi import APIRouter, Depends

from app.application.services.role_service import get_all_roles
from app.application.services.user_service import get_all_users, role_distribution
from app.application.services.web_session_service import list_active_sessions
from app.config import get_settings
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.web_session_repository import WebSessionRepository
from app.domain.schemas.user import RoleRead
from app.interfaces.api.deps import get_token_claims
from app.interfaces.deps import get_role_repository, get_user_repository, get_web_session_repository

settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)
logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/system/info")
def system_info(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
):
    users = get_all_users(user_repo)
    active = sum(1 for user in users if user.enabled)
    return {
        "totalUsers": len(users),
        "activeUsers": active,
        "inactiveUsers": len(users) - active,
        "roleDistribution": role_distribution(users),
        "systemAdmin": claims.get("preferred_username"),
        "timestamp": datetime.now(tz),
    }


def _account_status_placeholder(user_id: str, action: str, claims: Dict[str, Any]) -> Dict[str, Any]:
    logger.warning("Account status change requested but not persisted", user_id=user_id, action=action)
    return {
        "message": f"{action.capitalize()} request for user {user_id} acknowledged; "
        "account status is managed by the identity provider and was not changed",
        "persisted": False,
        "adminUser": claims.get("preferred_username"),
    }


# Placeholders: the stored user is never modified.
@router.post("/users/{user_id}/enable")
def enable_user(user_id: str, claims: Dict[str, Any] = Depends(get_token_claims)):
    return _account_status_placeholder(user_id, "enable", claims)


@router.post("/users/{user_id}/disable")
def disable_user(user_id: str, claims: Dict[str, Any] = Depends(get_token_claims)):
    return _account_status_placeholder(user_id, "disable", claims)


@router.get("/roles", response_model=List[RoleRead])
def list_roles(role_repo: RoleRepository = Depends(get_role_repository)):
    return [RoleRead.from_role(role) for role in get_all_roles(role_repo)]


@router.get("/audit/sessions")
def active_sessions(
    claims: Dict[str, Any] = Depends(get_token_claims),
    session_repo: WebSessionRepository = Depends(get_web_session_repository),
):
    """Browser login sessions currently registered. Bearer API calls hold no session."""
    sessions = list_active_sessions(session_repo)
    return {
        "sessions": [
            {
                "userId": entry.user_id,
                "username": entry.username,
                "createdAt": entry.created_at,
                "tokenExpiresAt": entry.token_expires_at,
            }
            for entry in sessions
        ],
        "total": len(sessions),
        "adminUser": claims.get("preferred_username"),
        "timestamp": datetime.now(tz),
    }


@router.get("/dashboard")
def admin_dashboard(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
):
    users = get_all_users(user_repo)
    return {
        "welcome": f"Admin Dashboard - {claims.get('preferred_username')}",
        "totalUsers": len(users),
        "roleDistribution": role_distribution(users),
        "accessibleEndpoints": [
            "/api/admin/*",
            "/api/manager/*",
            "/api/user/*",
        ],
    }
