"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and the scheduling service, registers the router,
and rebuilds the occupancy indexes before the first request.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from projector_service.controllers.projector_controller import router as projector_router
from projector_service.domain.timeline import YearTimeline
from projector_service.repository.base import AllocationStore
from projector_service.repository.data_repository import DataRepository
from projector_service.services.scheduling_service import ProjectorSchedulingService
from projector_service.utils.config import Settings, get_settings
from projector_service.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[AllocationStore] = None,
    timeline: Optional[YearTimeline] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    The engine is constructed here and handed to the routes through
    app.state; there is no module-level scheduler instance.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite unless a store is injected) ---
    repository = repository or DataRepository(settings)

    # --- Engine (owns one occupancy index per projector) ---
    scheduling_service = ProjectorSchedulingService(
        repository=repository,
        settings=settings,
        timeline=timeline,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(projector_router)

    app.state.settings = settings
    app.state.repository = repository
    app.state.scheduling_service = scheduling_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Order matters:
      1. Schema must exist before anything is read.
      2. Occupancy indexes are rebuilt from the persisted allocations of the
         current year window, including every recurring booking.
    """
    repository = app.state.repository
    scheduling_service: ProjectorSchedulingService = app.state.scheduling_service

    initialize = getattr(repository, "initialize_database", None)
    if initialize is not None:
        logger.info("Startup: initializing database schema")
        initialize()

    logger.info("Startup: rebuilding projector occupancy")
    scheduling_service.rebuild()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
