"""Web session registry: server-side state of the one active browser session per user."""

from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class WebSession(Base):
    __tablename__ = "web_sessions"

    user_id = Column(String(255), primary_key=True)
    session_id = Column(String(64), nullable=False)
    username = Column(String(255), nullable=True)

    # OIDC profile (id token claims) and authorities derived at login
    profile = Column(JSON, nullable=False, default=dict)
    authorities = Column(JSON, nullable=False, default=list)

    # Authorized client
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WebSession {self.user_id}>"
