import os
import time

# Local SQLite database and a shared HS256 secret instead of the provider JWKS.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:////tmp/auth_demo_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-strong-value-1234567890")
os.environ.setdefault("OIDC_ISSUER_URI", "http://issuer.test/realms/demo")
os.environ.setdefault("OIDC_CLIENT_ID", "auth-demo")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import get_settings
from app.domain.models.role import Role
from app.domain.models.user import User
from app.infrastructure.database import Base, SessionLocal, engine
from app.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.application.services.role_service import seed_default_roles
from app.main import create_app

settings = get_settings()


def make_token(sub="user-1", username="alice", email="alice@example.com", realm_roles=("user",), **extra) -> str:
    now = int(time.time())
    claims = {
        "sub": sub,
        "preferred_username": username,
        "email": email,
        "given_name": "Alice",
        "family_name": "Liddell",
        "realm_access": {"roles": list(realm_roles)},
        "iat": now,
        "exp": now + 300,
        "iss": settings.OIDC_ISSUER_URI,
    }
    claims.update(extra)
    return jwt.encode(claims, settings.SECRET_KEY, algorithm="HS256")


def auth_header(**kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repo(db):
    return SQLAlchemyUserRepository(db, User)


@pytest.fixture
def role_repo(db):
    repo = SQLAlchemyRoleRepository(db, Role)
    seed_default_roles(repo)
    return repo


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client
