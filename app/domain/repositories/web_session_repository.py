"""
Web Session Repository Interface.
Backs the one-active-session-per-user rule for browser logins.
"""

from typing import Any, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.web_session import WebSession


class WebSessionRepository(BaseRepository[WebSession]):

    def register(self, user_id: str, session_id: str, **fields: Any) -> WebSession:
        """Make session_id the user's only active session, evicting any older one."""
        ...

    def get_current(self, user_id: str, session_id: str) -> Optional[WebSession]:
        """The stored session if session_id is still the user's active one."""
        ...

    def revoke(self, user_id: str, session_id: str) -> None:
        """Forget session_id if it is the active one."""
        ...
