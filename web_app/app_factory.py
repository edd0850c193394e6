"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shortlink.common.urls import normalize_path_prefix

from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware


def create_app(
    db_instance,
    service_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        db_instance: Mapping store
        service_instance: URLShortenerService
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Shortlink",
        description="URL shortening service",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.db = db_instance
    app.state.service = service_instance
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(LoggingMiddleware)

    # API first so /api/... never falls through to the redirect catch-all
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, prefix=normalize_path_prefix(config.path_prefix), tags=["Redirect"])

    return app
