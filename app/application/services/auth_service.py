"""Auth service: verification of provider-issued JWTs."""

from typing import Any, Dict, Optional

import structlog
from jose import JWTError, jwt

from app.config import get_settings
from app.infrastructure.oidc_client import OIDCProviderError, get_oidc_client

settings = get_settings()
logger = structlog.get_logger(__name__)


async def _verification_key(token: str) -> Any:
    if settings.SECRET_KEY:
        return settings.SECRET_KEY
    kid = jwt.get_unverified_header(token).get("kid")
    return await get_oidc_client().jwks(kid)


def _algorithms() -> list[str]:
    return ["HS256"] if settings.SECRET_KEY else settings.JWT_ALGORITHMS


async def _decode(token: str, audience: Optional[str], access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    try:
        key = await _verification_key(token)
        return jwt.decode(
            token,
            key,
            algorithms=_algorithms(),
            audience=audience,
            issuer=settings.OIDC_ISSUER_URI or None,
            access_token=access_token,
            options={"verify_aud": audience is not None},
        )
    except (JWTError, OIDCProviderError) as e:
        logger.info("Token rejected", reason=str(e))
        return None


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid access token, or None when it cannot be trusted."""
    return await _decode(token, settings.JWT_AUDIENCE)


async def decode_id_token(token: str, access_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Claims of a valid ID token issued to this client, or None."""
    return await _decode(token, settings.OIDC_CLIENT_ID, access_token=access_token)
