"""Public API routes: no authentication."""

from fastapi import APIRouter

from app.config import get_settings

settings = get_settings()
router = APIRouter(prefix="/api/public", tags=["Public"])


@router.get("/health")
def health():
    return {"status": "UP", "message": "Public endpoint accessible to all"}


@router.get("/info")
def info():
    return {
        "application": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "OAuth2 + Keycloak Authentication Demo with FastAPI",
        "authentication": "OAuth2 with Keycloak",
        "stack": "FastAPI + SQLAlchemy",
    }
