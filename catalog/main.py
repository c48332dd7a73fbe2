"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() builds the StorageContext and returns a configured app
   - Tests can create an app around their own storage, or override the
     get_storage dependency

2. Lifespan Events
   - startup: optional table creation, seeded admin account
   - shutdown: close pooled database connections

3. Middleware Stack
   - slowapi rate limiting
   - CORS

4. Exception Handlers
   - Vote errors answer in plain text (400 duplicate, 500 conflict/storage)
   - Other service errors map to JSON responses
   - Database and unexpected errors are logged and hidden from users
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from catalog import __version__
from catalog.config import get_settings
from catalog.database import StorageContext, create_storage
from catalog.dependencies import Storage
from catalog.routers import (
    auth_router,
    books_router,
    chatbot_router,
    files_router,
    recommendations_router,
    subscriptions_router,
    users_router,
    votes_router,
)
from catalog.services.chatbot import chat_mode
from catalog.services.exceptions import (
    AccountConflictError,
    BookNotFoundError,
    DuplicateVoteError,
    InvalidUploadError,
    RecommendationServiceError,
    StorageUnavailableError,
    TransactionConflictError,
    UploadTooLargeError,
)
from catalog.services.rate_limiter import limiter, rate_limit_exceeded_handler
from catalog.services.users import seed_admin

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown
    """
    storage: StorageContext = app.state.storage

    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Database dialect: {storage.engine.dialect.name}")

    if settings.create_tables_on_startup:
        storage.create_all()
        logger.info("Database tables created")

    if settings.seed_admin_on_startup:
        admin = seed_admin(storage, settings)
        logger.info(f"Seeded admin ready: {admin.username}")

    yield

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    storage.dispose()


# =============================================================================
# Application Factory
# =============================================================================
def create_app(storage: StorageContext | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        storage: Storage to use; built from settings when omitted

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Library Catalog API

Browse, search and download books, and like or dislike them.

### Features
- **Books**: Catalog with title/author/genre filters and file downloads
- **Votes**: One like or dislike per user per book, switchable
- **Users**: JWT authentication, profiles, admin management
- **Assistant**: Library chatbot and external recommendations
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.storage = storage or create_storage(settings)

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(DuplicateVoteError)
    async def duplicate_vote_handler(
        request: Request,
        exc: DuplicateVoteError,
    ) -> PlainTextResponse:
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(TransactionConflictError)
    async def conflict_handler(
        request: Request,
        exc: TransactionConflictError,
    ) -> PlainTextResponse:
        logger.warning(f"Conflict persisted after retry on {request.url.path}")
        return PlainTextResponse(
            exc.message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable_handler(
        request: Request,
        exc: StorageUnavailableError,
    ) -> PlainTextResponse:
        logger.error(f"Storage unavailable on {request.url.path}: {exc.__cause__}")
        return PlainTextResponse(
            exc.message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(BookNotFoundError)
    async def book_not_found_handler(
        request: Request,
        exc: BookNotFoundError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    @app.exception_handler(AccountConflictError)
    async def account_conflict_handler(
        request: Request,
        exc: AccountConflictError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": exc.message},
        )

    @app.exception_handler(InvalidUploadError)
    async def invalid_upload_handler(
        request: Request,
        exc: InvalidUploadError,
    ) -> JSONResponse:
        code = (
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            if isinstance(exc, UploadTooLargeError)
            else status.HTTP_400_BAD_REQUEST
        )
        return JSONResponse(status_code=code, content={"detail": exc.message})

    @app.exception_handler(RecommendationServiceError)
    async def recommendation_error_handler(
        request: Request,
        exc: RecommendationServiceError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Error fetching recommendations"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy errors raised outside the unit of work.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "A database error occurred. Please try again later."},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(status_code=500, content={"detail": str(exc)})

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    # Votes router comes first so /books/{id}/like is never shadowed
    app.include_router(votes_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(recommendations_router, prefix=api_prefix)
    app.include_router(chatbot_router, prefix=api_prefix)
    app.include_router(subscriptions_router, prefix=api_prefix)
    app.include_router(files_router)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API and its database are reachable.",
    )
    def health_check(storage: Storage) -> JSONResponse:
        """
        Health check endpoint.

        Used by load balancers and monitoring. Answers 503 when the
        database does not respond.
        """
        database_ok = storage.ping()
        body = {
            "status": "healthy" if database_ok else "unhealthy",
            "app": settings.app_name,
            "version": __version__,
            "database": {
                "dialect": storage.engine.dialect.name,
                "healthy": database_ok,
            },
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
            "chatbot": {"mode": chat_mode()},
        }
        return JSONResponse(
            status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body,
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": __version__,
            "api": api_prefix,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn catalog.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m catalog.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
