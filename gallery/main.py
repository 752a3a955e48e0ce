"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    STORAGE_MOCK_MODE=true uvicorn gallery.main:app --reload

For production:
    gunicorn gallery.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api.routes import health, images
from .config.settings import get_settings

STATIC_DIR = Path(__file__).parent / "static"

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs the storage mode on startup and warns about missing credentials.
    """
    settings = get_settings()

    logger.info(
        "Image gallery starting",
        extra={
            "version": __version__,
            "mock_mode": {"storage": settings.storage_mock_mode},
            "bucket": settings.storage_bucket_name,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Logged rather than fatal so /health/ready can report it
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Image gallery shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application: API routers first,
    then the static front-end mounted at the root so it only sees paths
    no router claimed.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Upload, browse, view, download and delete images kept in object storage.

        ## Workflow

        1. **List**: `GET /api/v1/images`
        2. **Upload**: `POST /api/v1/images` (multipart field `file`)
        3. **Delete**: `DELETE /api/v1/images?url=...`
        4. **View / download**: `GET /api/v1/images/view?url=...`,
           `GET /api/v1/images/download?url=...`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        images.router,
        prefix="/api/v1/images",
        tags=["Images"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
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
            status_code=500,
            content={"detail": "Internal server error"}
        )

    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="frontend")

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
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
        "gallery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
