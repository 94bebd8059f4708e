"""FastAPI main application with app factory and route configuration."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .deps import build_repository, get_settings
from .routes import suggestions, tasks
from .schemas import HealthResponse
from .services.suggestion_service import get_suggestion_client, initialize_suggestion_client
from .services.task_service import get_task_service, initialize_task_service
from .utils.logging import log_startup_info, setup_logging

logger = logging.getLogger(__name__)

APP_NAME = "TaskMaster Pro"
APP_VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-loaded ones

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup and shutdown events."""
        logger.info(f"Starting up {APP_NAME}")

        try:
            setup_logging(settings)
            log_startup_info(settings)

            repository = build_repository(settings)
            initialize_task_service(repository, require_due_date=settings.require_due_date)
            logger.info("Task service initialized")

            initialize_suggestion_client(settings)
            logger.info("Suggestion client initialized")

            logger.info("Application startup completed successfully")

        except Exception as e:
            logger.error(f"Error during application startup: {str(e)}")
            raise

        yield

        logger.info(f"Shutting down {APP_NAME}")
        close = getattr(repository, "close", None)
        if close is not None:
            close()
        logger.info("Application shutdown completed successfully")

    app = FastAPI(
        title=APP_NAME,
        description="Personal task tracking with filtered list and 7-day timeline views",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        start_time = time.perf_counter()
        logger.info(f"Request: {request.method} {request.url}")

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url} in {process_time:.3f}s"
        )
        return response

    # Custom exception handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code,
                "path": str(request.url),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors with detailed information."""
        logger.warning(
            f"Validation error for {request.method} {request.url}: {exc.errors()}"
        )

        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation error",
                "details": jsonable_errors(exc),
                "status_code": 422,
                "path": str(request.url),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url}: {str(exc)}",
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "status_code": 500,
                "path": str(request.url),
            },
        )

    @app.get("/healthz", tags=["health"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint for monitoring and load balancers."""
        task_service = get_task_service()
        suggestion_client = get_suggestion_client()

        health = HealthResponse(
            version=APP_VERSION,
            storage_backend=settings.storage_backend,
            suggestions_enabled=bool(suggestion_client and suggestion_client.is_configured),
        )
        if task_service is None:
            health.status = "degraded"
        return health

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/tasks/",
                "timeline": "/tasks/timeline/",
                "statistics": "/tasks/stats/",
                "suggestions": "/suggestions/description",
            },
        }

    app.include_router(tasks.router)
    app.include_router(suggestions.router)

    logger.info("FastAPI application created and configured")

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors reduced to JSON-safe fields."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taskmaster.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )
