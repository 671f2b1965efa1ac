from __future__ import annotations

from fastapi import FastAPI

from app.api.v1.router import router as api_v1_router
from app.config.settings import settings
from app.core.error_handlers import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import register_middlewares
from app.db.init_db import init_db


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers core middleware and exception handlers.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # Schema creation for dev/demo only; production uses migrations
    @app.on_event("startup")
    def on_startup() -> None:
        if not settings.is_production():
            init_db()

    return app


app = create_app()
