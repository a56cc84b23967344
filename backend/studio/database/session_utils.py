"""
Helpers for working with SQLAlchemy sessions in a dialect-agnostic way.
"""

from __future__ import annotations

from sqlalchemy.orm import Session


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Return the dialect name of the engine behind ``session``.

    Falls back to ``default`` when the session is unbound (mocked sessions in unit tests).
    """
    try:
        bind = session.get_bind()
    except Exception:
        return default
    name = getattr(getattr(bind, "dialect", None), "name", None)
    return name if isinstance(name, str) and name else default
