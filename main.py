import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import register_exception_handlers
from app.core.logging_config import setup_logging
from app.core.rate_limiter import build_rate_limiter
from app.core.revocation import build_revocation_store
from app.api.endpoints import applications, auth, health, sorting, users
from app.services.password_reset import LoggingPasswordResetNotifier
from app.services.sorting_service import SortingService
from app.services.token_service import TokenService

# Configure logging
setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up Job Board API...")
    logger.info("Registering database models (run \"alembic upgrade head\" to apply migrations)...")
    init_db()

    yield

    # Shutdown
    logger.info("Shutting down Job Board API...")


def create_app() -> FastAPI:
    """Build the application with its services attached to app.state."""
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Job board API: authentication, sessions, access control and job matching",
        lifespan=lifespan
    )

    # Configure CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(application)

    # One instance of each service per process
    application.state.token_service = TokenService(build_revocation_store(settings), settings)
    application.state.sorting_service = SortingService()
    application.state.rate_limiter = build_rate_limiter(settings)
    application.state.reset_notifier = LoggingPasswordResetNotifier(settings)

    # Include routers
    application.include_router(auth.router, prefix=settings.API_V1_STR)
    application.include_router(users.router, prefix=settings.API_V1_STR)
    application.include_router(applications.router, prefix=settings.API_V1_STR)
    application.include_router(sorting.router, prefix=settings.API_V1_STR)
    application.include_router(health.router, prefix=settings.API_V1_STR)

    return application


app = create_app()


@app.get("/")
async def root():
    """Root endpoint - API health check"""
    return {
        "message": "Job Board API",
        "version": "1.0.0",
        "status": "healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Enable auto-reload during development
        log_level="info"
    )
