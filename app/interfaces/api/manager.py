"""Manager API routes: user listing, role management and reports."""

from datetime import datetime
from typing import Any, Dict, List

import pytz
from fastapi import APIRouter, Depends

from app.application.services.user_service import assign_role, get_all_users, remove_role, role_distribution
from app.config import get_settings
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import RoleAssignmentRequest
from app.domain.schemas.user import UserRead
from app.interfaces.api.deps import get_token_claims
from app.interfaces.deps import get_role_repository, get_user_repository

settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)
router = APIRouter(prefix="/api/manager", tags=["Manager"])


@router.get("/users", response_model=List[UserRead])
def list_users(user_repo: UserRepository = Depends(get_user_repository)):
    return [UserRead.from_user(user) for user in get_all_users(user_repo)]


@router.post("/users/{user_id}/roles")
def add_user_role(
    user_id: str,
    body: RoleAssignmentRequest,
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
):
    assign_role(user_repo, role_repo, user_id, body.role)
    return {
        "message": f"Role {body.role.value} assigned to user {user_id}",
        "assignedBy": claims.get("preferred_username"),
    }


@router.delete("/users/{user_id}/roles")
def delete_user_role(
    user_id: str,
    body: RoleAssignmentRequest,
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
):
    remove_role(user_repo, role_repo, user_id, body.role)
    return {
        "message": f"Role {body.role.value} removed from user {user_id}",
        "removedBy": claims.get("preferred_username"),
    }


@router.get("/reports")
def manager_reports(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
):
    users = get_all_users(user_repo)
    return {
        "totalUsers": len(users),
        "usersByRole": role_distribution(users),
        "generatedBy": claims.get("preferred_username"),
        "timestamp": datetime.now(tz),
    }


@router.get("/dashboard")
def manager_dashboard(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user_repo: UserRepository = Depends(get_user_repository),
):
    return {
        "welcome": f"Manager Dashboard - {claims.get('preferred_username')}",
        "totalUsers": len(get_all_users(user_repo)),
        "accessibleEndpoints": [
            "/api/manager/users",
            "/api/manager/reports",
            "/api/manager/dashboard",
            "/api/user/*",
        ],
    }
