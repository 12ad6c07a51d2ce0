"""FastAPI dependencies: the principal established by the request gate."""

from typing import Any, Dict, Optional

from fastapi import Request

from app.core.exceptions import UnauthorizedException
from app.domain.schemas.auth import Principal


def get_optional_principal(request: Request) -> Optional[Principal]:
    return getattr(request.state, "principal", None)


def get_current_principal(request: Request) -> Principal:
    """The authenticated caller. The gate has already rejected anonymous requests."""
    principal = get_optional_principal(request)
    if principal is None:
        raise UnauthorizedException("Authentication required")
    return principal


def get_token_claims(request: Request) -> Dict[str, Any]:
    """Verified access token claims of a bearer-authenticated API call."""
    principal = get_current_principal(request)
    if principal.kind != "bearer":
        raise UnauthorizedException("Bearer token required")
    return principal.claims
