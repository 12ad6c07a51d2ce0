"""Session service: session facts projected from a verified token."""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import pytz

from app.application.services.claims import realm_roles
from app.config import get_settings
from app.domain.schemas.auth import SessionInfo

settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)


def _now() -> datetime:
    return datetime.now(tz)


def _to_local(timestamp: Any, fallback: datetime) -> datetime:
    if timestamp is None:
        return fallback
    if isinstance(timestamp, datetime):
        instant = timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    else:
        instant = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return instant.astimezone(tz)


def get_session_info(claims: Mapping[str, Any], now: Optional[datetime] = None) -> SessionInfo:
    """Snapshot of the session carried by a token. Computed fresh on every call."""
    now = now or _now()
    return SessionInfo(
        user_id=claims.get("sub"),
        username=claims.get("preferred_username"),
        email=claims.get("email"),
        roles=realm_roles(claims),
        issued_at=_to_local(claims.get("iat"), now),
        expires_at=_to_local(claims.get("exp"), now),
        issuer=str(claims["iss"]) if claims.get("iss") is not None else None,
    )


def is_session_valid(claims: Mapping[str, Any], now: Optional[datetime] = None) -> bool:
    now = now or _now()
    return get_session_info(claims, now).expires_at > now


def get_remaining_session_time(claims: Mapping[str, Any], now: Optional[datetime] = None) -> int:
    """Seconds until the token expires; 0 once it has."""
    now = now or _now()
    expires_at = get_session_info(claims, now).expires_at
    return max(0, int((expires_at - now).total_seconds()))
