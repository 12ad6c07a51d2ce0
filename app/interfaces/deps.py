"""
API Dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.domain.models.role import Role
from app.domain.models.user import User
from app.domain.models.web_session import WebSession
from app.domain.repositories.role_repository import RoleRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.repositories.web_session_repository import WebSessionRepository
from app.infrastructure.database import get_db
from app.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.repositories.web_session_repository import SQLAlchemyWebSessionRepository


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_role_repository(db: Session = Depends(get_db)) -> RoleRepository:
    """Get role repository instance."""
    return SQLAlchemyRoleRepository(db, Role)


def get_web_session_repository(db: Session = Depends(get_db)) -> WebSessionRepository:
    """Get web session repository instance."""
    return SQLAlchemyWebSessionRepository(db, WebSession)
