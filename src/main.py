"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.dependencies import close_clients
from .api.routes import health, videos
from .config.settings import get_settings
from .core.videos.errors import (
    ValidationError,
    VideoLifecycleError,
    VideoNotFoundError,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

# Azure SDKs log every HTTP request at INFO
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)
logging.getLogger("azure").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def status_for(exc: VideoLifecycleError) -> int:
    """HTTP status for a lifecycle error. Configuration and dependency failures are 500."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, VideoNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup logs configuration gaps; the process keeps running and the
    affected operations answer 500 "not configured". Shutdown closes the
    shared Azure clients.
    """
    # Startup
    settings = get_settings()

    logger.info(
        "Video API starting",
        extra={
            "version": __version__,
            "mock_mode": {
                "storage": settings.storage_mock_mode,
                "cosmos": settings.cosmos_mock_mode,
            }
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.warning(
            "Missing configuration, dependent operations will fail",
            extra={"missing_fields": missing_fields}
        )

    yield

    # Shutdown
    close_clients()
    logger.info("Video API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    This function is called once at startup (in production) or
    multiple times (in tests with different configurations).
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Brokers time-limited access to Azure Blob Storage for video uploads
        and downloads, and keeps video metadata in Cosmos DB.

        ## Workflow

        1. **Request upload**: `POST /upload-request` with `{title, fileName}`
           - Returns a write SAS URL valid for 10 minutes
        2. **Upload**: `PUT` the bytes to `uploadUrl` with `x-ms-blob-type: BlockBlob`
        3. **Confirm**: `POST /confirm-upload` with `{fileName}`
        4. **Browse**: `GET /videos`, `GET /videos/{id}/download`
        5. **Remove**: `DELETE /videos/{id}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    # The browser client is served from another origin and calls the API directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_origins_list != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        tags=["Videos"],
    )

    # Root endpoint
    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return "Video API is running"

    @app.exception_handler(VideoLifecycleError)
    async def lifecycle_exception_handler(request: Request, exc: VideoLifecycleError):
        """Render lifecycle errors as {"error": message}."""
        status_code = status_for(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(
            "Request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "error": exc.message,
            },
        )
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are client errors: 400, not FastAPI's default 422."""
        logger.warning(
            "Invalid request",
            extra={"path": request.url.path, "errors": str(exc.errors())}
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request body",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Keep the {"error": ...} shape for routing errors (404, 405)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        In production, this prevents stack traces from leaking to clients.
        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": __version__,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
