"""
FastAPI application for message extraction and PDF merging.

This is the main application that wires routers and middleware.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..version import API_VERSION
from ..config import settings
from ..logging_config import setup_logging
from .routes import health, version, ingest, merge
from .middleware import setup_error_handling_middleware, setup_request_context_middleware

# Setup logging on module import
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log service startup and shutdown."""
    logger.info(
        "Starting EML Binder API",
        version=API_VERSION,
        log_level=settings.log_level,
        max_email_size_mb=settings.max_email_size_mb,
    )
    yield
    logger.info("Shutting down EML Binder API")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="EML Binder",
        description="Decode .eml/.msg files, extract attachments and merge PDF attachments",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "Content-Disposition",
            "X-Merged-Count",
            "X-Failed-Count",
            "X-Page-Count",
            "X-Request-ID",
        ],
    )

    # Last added runs outermost: request context is bound before errors are handled
    setup_error_handling_middleware(app)
    setup_request_context_middleware(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(version.router, prefix="/api/v1", tags=["Version"])
    app.include_router(ingest.router, prefix="/api/v1/ingest", tags=["Ingestion"])
    app.include_router(merge.router, prefix="/api/v1/merge", tags=["Merge"])

    return app


app = create_app()


def main() -> None:
    """
    Entry point for running the API server directly.

    For development use. In production, use uvicorn directly.
    """
    import uvicorn

    uvicorn.run(
        "eml_binder.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
