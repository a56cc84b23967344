# backend/studio/main.py
"""
Application factory for the studio scheduling API.

The process entry point owns the database engine: ``create_app`` builds it
in the lifespan from ``Settings`` (unless one is handed in) and disposes of
it on shutdown. Request handlers reach the session factory through
``app.state``; nothing is created at import time.

Run with:
    uvicorn studio.main:create_app --factory
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute
from sqlalchemy.engine import Engine

from .core.config import Settings, is_running_tests, settings as default_settings
from .database import build_session_factory, create_db_engine
from .errors import register_error_handlers
from .routes.v1 import (
    attendance as attendance_v1,
    events as events_v1,
    lessons as lessons_v1,
    participants as participants_v1,
)

logger = logging.getLogger(__name__)

API_TITLE = "Studio Scheduling API"
API_VERSION = "1.0.0"


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    return f"{methods}__{path}__{route.name}".strip("_")


def _attach_engine(app: FastAPI, engine: Engine) -> None:
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)


def create_app(config: Optional[Settings] = None, *, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings override (defaults to the module settings)
        engine: Pre-built engine owned by the caller (tests); when omitted the
            lifespan creates one and disposes of it on shutdown
    """
    config = config or default_settings
    configure_logging(config)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("%s starting up", API_TITLE)
        if is_running_tests():
            logger.info("Running under pytest (test mode active)")

        owns_engine = getattr(app.state, "engine", None) is None
        if owns_engine:
            _attach_engine(app, create_db_engine(config))
        try:
            yield
        finally:
            if owns_engine:
                app.state.engine.dispose()
                app.state.engine = None
                app.state.session_factory = None
                logger.info("Database engine disposed")
            logger.info("%s shut down", API_TITLE)

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
        generate_unique_id_function=_unique_operation_id,
    )
    app.state.settings = config
    app.state.engine = None
    app.state.session_factory = None
    if engine is not None:
        _attach_engine(app, engine)

    register_error_handlers(app)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(lessons_v1.router, prefix="/lessons")
    api_v1.include_router(events_v1.router, prefix="/events")
    api_v1.include_router(attendance_v1.router, prefix="/attendance")
    api_v1.include_router(participants_v1.router, prefix="/participants")
    app.include_router(api_v1)

    return app
