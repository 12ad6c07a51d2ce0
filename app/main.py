"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.infrastructure.database import engine, Base, SessionLocal
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from app.domain.models.role import Role
from app.domain.models.user import User
from app.domain.models.web_session import WebSession

# Import routers
from app.interfaces.api.public import router as public_router
from app.interfaces.api.user import router as user_router
from app.interfaces.api.manager import router as manager_router
from app.interfaces.api.admin import router as admin_router
from app.interfaces.web.pages import router as web_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)

STATIC_DIR = Path(__file__).parent / "interfaces" / "web" / "static"


def bootstrap_roles() -> None:
    """Seed the fixed role rows. Safe to run on every start."""
    from app.application.services.role_service import seed_default_roles
    from app.infrastructure.repositories.role_repository import SQLAlchemyRoleRepository

    db = SessionLocal()
    try:
        seed_default_roles(SQLAlchemyRoleRepository(db, Role))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Auth Demo...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    bootstrap_roles()

    yield

    logger.info("Auth Demo stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="OAuth2/OIDC authentication with role-based access to REST endpoints and pages",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    # Gate, sessions, request logging, correlation id
    setup_middleware(app)

    # Global Exception Handling
    app.add_exception_handler(AppError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Starlette executes middleware LIFO, so CORS added last runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(public_router)
    app.include_router(user_router)
    app.include_router(manager_router)
    app.include_router(admin_router)
    app.include_router(web_router)

    app.mount("/css", StaticFiles(directory=STATIC_DIR / "css"), name="css")

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
