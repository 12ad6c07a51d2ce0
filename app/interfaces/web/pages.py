"""Server-rendered pages and the browser login flow (OIDC authorization code)."""

from pathlib import Path
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from app.application.services.auth_service import decode_access_token, decode_id_token
from app.application.services.claims import extract_authorities
from app.application.services.user_service import get_all_users, identity_from_claims, role_distribution, sync_user
from app.application.services.web_session_service import (
    begin_login,
    csrf_token,
    end_session,
    pop_login_state,
    start_session,
)
from app.config import get_settings
from app.core.exceptions import EntityNotFoundException
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.web_session_repository import WebSessionRepository
from app.domain.schemas.auth import Principal
from app.infrastructure.oidc_client import OIDCProviderError, get_oidc_client
from app.interfaces.api.deps import get_current_principal, get_optional_principal
from app.interfaces.deps import get_role_repository, get_user_repository, get_web_session_repository

settings = get_settings()
logger = structlog.get_logger(__name__)
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter(tags=["Web"])

LOGIN_FAILED = "/?error"


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


def _check_registration(registration_id: str) -> None:
    if registration_id != settings.OIDC_REGISTRATION_ID:
        raise EntityNotFoundException(f"Unknown client registration {registration_id}")


def _page_context(request: Request, principal: Principal, **extra) -> dict:
    claims = principal.claims
    context = {
        "username": claims.get("preferred_username"),
        "email": claims.get("email"),
        "firstName": claims.get("given_name"),
        "lastName": claims.get("family_name"),
        "roles": principal.authorities,
        "accessToken": principal.authorized_client.access_token if principal.authorized_client else None,
        "csrfToken": csrf_token(request.session),
    }
    context.update(extra)
    return context


@router.get("/")
@router.get("/home")
def index(request: Request, error: Optional[str] = None, principal: Optional[Principal] = Depends(get_optional_principal)):
    context = {
        "isAuthenticated": principal is not None,
        "error": error,
        "csrfToken": csrf_token(request.session),
    }
    if principal is not None:
        context["username"] = principal.claims.get("preferred_username")
        context["email"] = principal.claims.get("email")
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/dashboard")
def dashboard(
    request: Request,
    error: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
    user_repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
):
    local_user = sync_user(user_repo, role_repo, identity_from_claims(principal.claims))
    roles = principal.authorities
    context = _page_context(
        request,
        principal,
        localUser=local_user,
        error=error,
        isAdmin="ROLE_ADMIN" in roles,
        isManager="ROLE_MANAGER" in roles or "ROLE_ADMIN" in roles,
    )
    return templates.TemplateResponse(request, "dashboard.html", context)


@router.get("/profile")
def profile(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    user_repo: UserRepository = Depends(get_user_repository),
    role_repo: RoleRepository = Depends(get_role_repository),
):
    local_user = sync_user(user_repo, role_repo, identity_from_claims(principal.claims))
    client = principal.authorized_client
    context = _page_context(
        request,
        principal,
        localUser=local_user,
        refreshToken=client.refresh_token if client else None,
        tokenExpiry=client.expires_at if client else None,
    )
    return templates.TemplateResponse(request, "profile.html", context)


@router.get("/admin")
def admin(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    user_repo: UserRepository = Depends(get_user_repository),
):
    if not principal.has_authority("ROLE_ADMIN"):
        logger.info("Admin page denied", user_id=principal.subject)
        return _redirect("/dashboard?error=access_denied")

    all_users = get_all_users(user_repo)
    context = _page_context(
        request,
        principal,
        allUsers=all_users,
        userCount=len(all_users),
        roleDistribution=role_distribution(all_users),
    )
    return templates.TemplateResponse(request, "admin.html", context)


@router.get("/oauth2/authorization/{registration_id}")
async def authorize(registration_id: str, request: Request):
    """Send the browser to the identity provider's login page."""
    _check_registration(registration_id)
    values = begin_login(request.session)
    redirect_uri = str(request.url_for("login_callback", registration_id=registration_id))
    try:
        url = await get_oidc_client().authorization_url(redirect_uri, **values)
    except OIDCProviderError as e:
        logger.error("Identity provider unavailable", error=str(e))
        return _redirect(LOGIN_FAILED)
    return _redirect(url)


@router.get("/login/oauth2/code/{registration_id}", name="login_callback")
async def login_callback(
    registration_id: str,
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    session_repo: WebSessionRepository = Depends(get_web_session_repository),
):
    """Complete the code flow and establish the login session."""
    _check_registration(registration_id)
    expected = pop_login_state(request.session)
    if error or not code or not state or state != expected["state"]:
        logger.warning("Login callback rejected", provider_error=error, state_ok=state == expected["state"])
        return _redirect(LOGIN_FAILED)

    redirect_uri = str(request.url_for("login_callback", registration_id=registration_id))
    try:
        tokens = await get_oidc_client().exchange_code(code, redirect_uri)
    except OIDCProviderError as e:
        logger.warning("Code exchange failed", error=str(e))
        return _redirect(LOGIN_FAILED)

    access_claims = await decode_access_token(tokens.get("access_token", ""))
    id_claims = await decode_id_token(tokens.get("id_token", ""), access_token=tokens.get("access_token"))
    if not access_claims or not id_claims or id_claims.get("nonce") != expected["nonce"]:
        logger.warning("Login tokens failed verification")
        return _redirect(LOGIN_FAILED)

    await run_in_threadpool(
        start_session, session_repo, request.session, id_claims, extract_authorities(access_claims), tokens
    )
    return _redirect("/dashboard")


@router.post("/logout")
def logout(request: Request, session_repo: WebSessionRepository = Depends(get_web_session_repository)):
    end_session(session_repo, request.session)
    return _redirect("/")
