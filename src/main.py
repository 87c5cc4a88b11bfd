import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.logging import logging_middleware
from src.api.core.middleware.security import SecurityHeadersMiddleware
from src.api.router import api_router
from src.database.connection import (
    create_engine_from_settings,
    create_session_factory,
    init_models,
)
from src.modules.organization.events import EventNotifier
from src.modules.organization.subscribers import register_default_subscribers
from src.utils.logger import setup_logging
from src.utils.settings.app import AppSettings
from src.utils.settings.auth import AuthSettings
from src.utils.settings.database import DatabaseSettings


def create_app(
    app_settings: AppSettings | None = None,
    database_settings: DatabaseSettings | None = None,
    auth_settings: AuthSettings | None = None,
    engine: AsyncEngine | None = None,
    notifier: EventNotifier | None = None,
) -> FastAPI:
    """Build the application; injected engine and notifier are not disposed by it."""
    app_settings = app_settings or AppSettings()
    database_settings = database_settings or DatabaseSettings()
    auth_settings = auth_settings or AuthSettings()
    is_production = app_settings.is_production

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger = setup_logging(is_production, debug=app_settings.DEBUG)
        logger.info("Starting OrgKeeper API...")
        app_settings.validate_prod()
        if not auth_settings.JWT_SECRET:
            logger.warning("JWT_SECRET is empty; every bearer token will be rejected")

        owns_engine = engine is None
        app_engine = engine or create_engine_from_settings(database_settings)
        if owns_engine and database_settings.DATABASE_CREATE_TABLES:
            await init_models(app_engine)

        app.state.engine = app_engine
        app.state.session_factory = create_session_factory(app_engine)
        app.state.auth_settings = auth_settings
        if notifier is None:
            app.state.notifier = EventNotifier()
            register_default_subscribers(app.state.notifier)
        else:
            app.state.notifier = notifier
        logger.info("Database session factory and event notifier added to app state")

        yield

        # Shutdown
        logger.info("Shutting down OrgKeeper API...")
        await app.state.notifier.drain()
        if owns_engine:
            await app_engine.dispose()

    app = FastAPI(
        title="OrgKeeper API",
        description="Multi-tenant organization and membership management",
        version=app_settings.API_VERSION,
        lifespan=lifespan,
        # Security: Disable docs in production
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )

    # Register global exception handlers
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
    app.middleware("http")(logging_middleware)

    app.include_router(api_router)
    return app


app = create_app()


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
