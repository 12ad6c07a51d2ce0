"""Web session service: browser login sessions backed by the session registry.

The signed session cookie only carries the user id, a random session id and
the CSRF token. Everything else lives in the ``web_sessions`` row, and only
the newest login of a user owns that row: logging in again elsewhere makes
the older cookie resolve to nothing.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import structlog

from app.domain.models.web_session import WebSession
from app.domain.repositories.web_session_repository import WebSessionRepository
from app.domain.schemas.auth import AuthorizedClient, Principal

logger = structlog.get_logger(__name__)

USER_ID_KEY = "uid"
SESSION_ID_KEY = "sid"
CSRF_KEY = "csrf_token"
STATE_KEY = "oauth_state"
NONCE_KEY = "oauth_nonce"


def begin_login(session: MutableMapping[str, Any]) -> Dict[str, str]:
    """Remember fresh state/nonce values for the authorization redirect."""
    state = secrets.token_urlsafe(24)
    nonce = secrets.token_urlsafe(24)
    session[STATE_KEY] = state
    session[NONCE_KEY] = nonce
    return {"state": state, "nonce": nonce}


def pop_login_state(session: MutableMapping[str, Any]) -> Dict[str, Optional[str]]:
    return {"state": session.pop(STATE_KEY, None), "nonce": session.pop(NONCE_KEY, None)}


def start_session(
    repo: WebSessionRepository,
    session: MutableMapping[str, Any],
    profile: Mapping[str, Any],
    authorities: List[str],
    tokens: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> WebSession:
    """Register a new login for ``profile['sub']``, replacing any older session."""
    now = now or datetime.now(timezone.utc)
    expires_in = tokens.get("expires_in")
    session_id = secrets.token_urlsafe(32)

    entry = repo.register(
        profile["sub"],
        session_id,
        username=profile.get("preferred_username"),
        profile=dict(profile),
        authorities=list(authorities),
        access_token=tokens["access_token"],
        refresh_token=tokens.get("refresh_token"),
        token_expires_at=now + timedelta(seconds=int(expires_in)) if expires_in else None,
    )

    session.clear()
    session[USER_ID_KEY] = entry.user_id
    session[SESSION_ID_KEY] = session_id
    session[CSRF_KEY] = secrets.token_urlsafe(32)
    logger.info("Web session started", user_id=entry.user_id)
    return entry


def resolve_principal(repo: WebSessionRepository, session: MutableMapping[str, Any]) -> Optional[Principal]:
    """The principal behind a session cookie, or None if absent or superseded."""
    user_id = session.get(USER_ID_KEY)
    session_id = session.get(SESSION_ID_KEY)
    if not user_id or not session_id:
        return None

    entry = repo.get_current(user_id, session_id)
    if entry is None:
        logger.info("Web session no longer active", user_id=user_id)
        session.clear()
        return None

    return Principal(
        kind="session",
        subject=entry.user_id,
        username=entry.username,
        claims=entry.profile or {},
        authorities=entry.authorities or [],
        authorized_client=AuthorizedClient(
            access_token=entry.access_token,
            refresh_token=entry.refresh_token,
            expires_at=entry.token_expires_at,
        ),
    )


def end_session(repo: WebSessionRepository, session: MutableMapping[str, Any]) -> None:
    user_id = session.get(USER_ID_KEY)
    session_id = session.get(SESSION_ID_KEY)
    if user_id and session_id:
        repo.revoke(user_id, session_id)
        logger.info("Web session ended", user_id=user_id)
    session.clear()


def csrf_token(session: Mapping[str, Any]) -> Optional[str]:
    return session.get(CSRF_KEY)


def is_valid_csrf(session: Mapping[str, Any], supplied: Optional[str]) -> bool:
    expected = session.get(CSRF_KEY)
    if not expected or not supplied:
        return False
    return secrets.compare_digest(str(expected), str(supplied))


def list_active_sessions(repo: WebSessionRepository) -> List[WebSession]:
    return repo.list_all()
