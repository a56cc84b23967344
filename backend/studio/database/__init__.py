"""
Declarative base and session helpers shared across the application.

Engines and session factories are never created at import time: the process
entry point builds them from ``Settings`` and passes them down explicitly.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeMeta, declarative_base

Base: DeclarativeMeta = declarative_base()

from .engines import create_db_engine  # noqa: E402
from .sessions import build_session_factory, session_scope  # noqa: E402

__all__ = [
    "Base",
    "build_session_factory",
    "create_db_engine",
    "session_scope",
]
