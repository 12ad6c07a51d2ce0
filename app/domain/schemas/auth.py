"""Pydantic schemas for identities, sessions and role assignment."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.domain.models.role import RoleType


class ExternalIdentity(BaseModel):
    """Identity as asserted by the provider (token claims or OIDC profile)."""

    subject: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class SessionInfo(BaseModel):
    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    roles: List[str] = []
    issued_at: datetime
    expires_at: datetime
    issuer: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoleAssignmentRequest(BaseModel):
    role: RoleType


class AuthorizedClient(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None


class Principal(BaseModel):
    """The authenticated caller of the current request.

    ``kind`` is ``"bearer"`` for API calls and ``"session"`` for browser pages.
    ``claims`` are the verified access token claims (bearer) or the OIDC
    profile (session).
    """

    kind: str
    subject: str
    username: Optional[str] = None
    claims: Dict[str, Any] = {}
    authorities: List[str] = []
    authorized_client: Optional[AuthorizedClient] = None

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities
