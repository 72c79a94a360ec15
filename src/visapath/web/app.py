"""FastAPI application for VisaPath.

Serves the visa catalog, journey progress tracking and authentication
endpoints, plus health checks.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visapath.auth.middleware import AuthMiddleware
from visapath.auth.provider import AuthProvider, MockAuthProvider
from visapath.catalog.store import VisaCatalog
from visapath.core.config import Settings
from visapath.core.types import HealthStatus
from visapath.export.renderer import ReportRenderer
from visapath.journeys.engine import JourneyEngine
from visapath.journeys.store import JourneyStore
from visapath.repositories.protocols import JourneyRepository
from visapath.web.auth_router import router as auth_router
from visapath.web.catalog_router import router as catalog_router
from visapath.web.journey_router import router as journey_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    journey_store: JourneyRepository | None = None,
    catalog: VisaCatalog | None = None,
    auth_provider: AuthProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own stores and fixtures.

    Args:
        settings: Application settings. Defaults to Settings().
        journey_store: Optional pre-built journey repository. When omitted,
            a Postgres repository is used if ``settings.db.database_url`` is
            set, otherwise the in-memory store.
        catalog: Optional pre-loaded visa catalog.
        auth_provider: Optional pre-built auth provider.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("visapath").setLevel(settings.log_level.upper())

    db_manager = None
    if journey_store is None and settings.db.database_url:
        from visapath.db.engine import DatabaseManager
        from visapath.repositories.postgres.journeys import PostgresJourneyRepository

        db_manager = DatabaseManager.from_config(settings.db)
        journey_store = PostgresJourneyRepository(db_manager)
        logger.info("Using Postgres journey repository")
    elif journey_store is None:
        journey_store = JourneyStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="VisaPath",
        description="Visa application guidance and journey tracking",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if catalog is None:
        catalog = VisaCatalog(
            visa_types_dir=settings.catalog.visa_types_dir,
            countries_path=settings.catalog.countries_path,
        )

    if auth_provider is None:
        auth_provider = MockAuthProvider(
            fixtures_path=settings.auth.fixtures_path,
            token_expiry_minutes=settings.auth.token_expiry_minutes,
        )

    journey_engine = JourneyEngine(
        store=journey_store,
        catalog=catalog,
        config=settings.journey,
    )

    app.state.settings = settings
    app.state.catalog = catalog
    app.state.journey_store = journey_store
    app.state.journey_engine = journey_engine
    app.state.auth_provider = auth_provider
    app.state.report_renderer = ReportRenderer()
    if db_manager is not None:
        app.state.db_manager = db_manager

    app.add_middleware(AuthMiddleware)

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(journey_router)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/api/health", response_model=HealthStatus)
    async def health_check() -> HealthStatus:
        """Health check endpoint."""
        return HealthStatus(status="healthy", service="visapath")

    @app.get("/api/info")
    async def service_info() -> dict[str, Any]:
        return {
            "environment": settings.environment,
            "visaTypes": catalog.visa_type_count,
            "countries": len(catalog.list_countries()),
        }

    return app
