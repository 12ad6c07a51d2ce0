"""User API routes: profile, session and self-synchronization."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.application.services.session_service import (
    get_remaining_session_time,
    get_session_info,
    is_session_valid,
)
from app.application.services.user_service import get_user, sync_user_from_claims
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import SessionInfo
from app.domain.schemas.user import UserRead
from app.interfaces.api.deps import get_token_claims
from app.interfaces.deps import get_role_repository, get_user_repository

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/profile")
def user_profile(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
):
    """Token identity plus the mirrored local user, if synchronized already."""
    user = get_user(user_repo, claims["sub"])
    return {
        "keycloakId": claims["sub"],
        "username": claims.get("preferred_username"),
        "email": claims.get("email"),
        "firstName": claims.get("given_name"),
        "lastName": claims.get("family_name"),
        "roles": user.role_names if user else [],
        "localUser": UserRead.from_user(user) if user else None,
    }


@router.get("/session", response_model=SessionInfo)
def session_info(claims: Dict[str, Any] = Depends(get_token_claims)):
    return get_session_info(claims)


@router.get("/dashboard")
def user_dashboard(claims: Dict[str, Any] = Depends(get_token_claims)):
    return {
        "welcome": f"Welcome to your dashboard, {claims.get('preferred_username')}!",
        "sessionInfo": get_session_info(claims),
        "sessionRemainingSeconds": get_remaining_session_time(claims),
        "sessionValid": is_session_valid(claims),
        "accessibleEndpoints": [
            "/api/user/profile",
            "/api/user/session",
            "/api/user/dashboard",
        ],
    }


@router.post("/sync")
def sync_profile(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
):
    user = sync_user_from_claims(user_repo, role_repo, claims)
    return {"message": "User profile synchronized", "user": UserRead.from_user(user)}
