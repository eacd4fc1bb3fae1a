"""FastAPI application — main entry point."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from accounts_api.application.services.auth_service import bootstrap_admin_if_needed
from accounts_api.application.services.security import build_password_hasher, build_token_service
from accounts_api.config import Settings, get_settings
from accounts_api.core.exceptions import register_exception_handlers
from accounts_api.core.logging import configure_logging
from accounts_api.core.middleware import setup_middleware
from accounts_api.domain.models.user import User
from accounts_api.infrastructure.database import Database
from accounts_api.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

from accounts_api.interfaces.api.auth import router as auth_router
from accounts_api.interfaces.api.deps import guarded_validation_handler
from accounts_api.interfaces.api.users import router as users_router

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around explicitly provided resources."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan — startup and shutdown events."""
        db_handle: Database = app.state.database
        logger.info("Starting Accounts API...", env=settings.ENVIRONMENT)

        db_handle.initialize()

        session = db_handle.session()
        try:
            repo = SQLAlchemyUserRepository(session, User)
            bootstrap_admin_if_needed(repo, app.state.password_hasher, settings)
        finally:
            session.close()

        yield

        db_handle.close()
        logger.info("Accounts API stopped")

    app = FastAPI(
        title="Accounts API",
        description="User account management with JWT authentication and USER/ADMIN roles",
        version="1.0.0",
        docs_url="/api-docs",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.password_hasher = build_password_hasher(settings)
    app.state.token_service = build_token_service(settings)

    setup_middleware(app, settings.CORS_ORIGINS)
    register_exception_handlers(app)
    app.add_exception_handler(RequestValidationError, guarded_validation_handler)

    app.include_router(auth_router)
    app.include_router(users_router)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("accounts_api.main:app", host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
