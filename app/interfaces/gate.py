"""Request gate: authentication, route policy and CSRF, ahead of every handler.

API requests (``/api/...``) are stateless and authenticate with a bearer
token on every call. Everything else is a browser request authenticated by
the login session. CSRF tokens are required on unsafe methods for session
requests only; a bearer token is never sent implicitly by a browser.
"""

from typing import Optional

import structlog
from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from app.application.services.auth_service import decode_access_token
from app.application.services.authorization import Decision, evaluate
from app.application.services.claims import extract_authorities
from app.application.services.web_session_service import is_valid_csrf, resolve_principal
from app.core.exceptions import ForbiddenException, UnauthorizedException, error_response
from app.domain.models.web_session import WebSession
from app.domain.schemas.auth import Principal
from app.infrastructure.database import SessionLocal
from app.infrastructure.repositories.web_session_repository import SQLAlchemyWebSessionRepository

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
CSRF_HEADER = "X-CSRF-Token"
CSRF_FORM_FIELD = "_csrf"


def is_api_request(path: str) -> bool:
    return path.startswith(API_PREFIX)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def bearer_principal(request: Request) -> Optional[Principal]:
    token = bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    claims = await decode_access_token(token)
    if not claims or not claims.get("sub"):
        return None
    return Principal(
        kind="bearer",
        subject=claims["sub"],
        username=claims.get("preferred_username"),
        claims=claims,
        authorities=extract_authorities(claims),
    )


def _session_principal(session: dict) -> Optional[Principal]:
    db = SessionLocal()
    try:
        return resolve_principal(SQLAlchemyWebSessionRepository(db, WebSession), session)
    finally:
        db.close()


async def _csrf_supplied(request: Request) -> Optional[str]:
    supplied = request.headers.get(CSRF_HEADER)
    if supplied:
        return supplied
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return form.get(CSRF_FORM_FIELD)
    return None


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """Evaluates the route policy before routing; handlers never see denied requests."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        method = request.method
        api = is_api_request(path)

        if api:
            principal = await bearer_principal(request)
        else:
            principal = await run_in_threadpool(_session_principal, request.session)

        decision = evaluate(path, method, principal is not None, principal.authorities if principal else ())

        if decision is Decision.UNAUTHENTICATED:
            if api:
                return error_response(UnauthorizedException("Authentication required"), path)
            return RedirectResponse("/", status_code=302)

        if decision is Decision.FORBIDDEN:
            logger.info("Access denied", path=path, method=method, user_id=principal.subject)
            return error_response(ForbiddenException("Insufficient authority for this resource"), path)

        if principal is not None and principal.kind == "session" and method not in SAFE_METHODS:
            if not is_valid_csrf(request.session, await _csrf_supplied(request)):
                logger.warning("CSRF check failed", path=path, user_id=principal.subject)
                return error_response(ForbiddenException("Invalid or missing CSRF token"), path)

        request.state.principal = principal
        return await call_next(request)
