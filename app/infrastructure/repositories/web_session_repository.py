"""
SQLAlchemy Implementation of Web Session Repository.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import func

from app.domain.models.web_session import WebSession
from app.domain.repositories.web_session_repository import WebSessionRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository

logger = structlog.get_logger(__name__)


def _take_over(entry: WebSession, session_id: str, fields: dict) -> WebSession:
    entry.session_id = session_id
    for field, value in fields.items():
        setattr(entry, field, value)
    return entry


class SQLAlchemyWebSessionRepository(SQLAlchemyRepository[WebSession], WebSessionRepository):

    def register(self, user_id: str, session_id: str, **fields: Any) -> WebSession:
        entry = self.get_by_id(user_id)
        if entry is not None:
            return self._replace(entry, session_id, fields)

        try:
            return self.save(_take_over(WebSession(user_id=user_id), session_id, fields))
        except IntegrityError:
            # A concurrent first login for the same user inserted the row
            self.rollback()
            existing = self.get_by_id(user_id)
            if existing is None:
                raise
            logger.info("Concurrent login registration, replacing session", user_id=user_id)
            return self._replace(existing, session_id, fields)

    def _replace(self, entry: WebSession, session_id: str, fields: dict) -> WebSession:
        entry.created_at = func.now()
        return self.save(_take_over(entry, session_id, fields))

    def get_current(self, user_id: str, session_id: str) -> Optional[WebSession]:
        entry = self.get_by_id(user_id)
        if entry is None or entry.session_id != session_id:
            return None
        return entry

    def revoke(self, user_id: str, session_id: str) -> None:
        entry = self.get_current(user_id, session_id)
        if entry is not None:
            self.db.delete(entry)
            self.db.commit()
