# backend/studio/api/dependencies/database.py
"""
Database-related dependencies.

The session factory lives on ``app.state``; it is created by the
application's lifespan (or handed in by whoever built the app).
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session, sessionmaker

from ...core.config import Settings


def get_session_factory(request: Request) -> sessionmaker:
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("Session factory not initialised; is the app lifespan running?")
    return factory


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    db = get_session_factory(request)()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
