"""Database engine factory."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool

from ..core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_BASE_CONNECT_ARGS: dict[str, Any] = {
    "keepalives": 1,
    "keepalives_idle": 15,
    "keepalives_interval": 5,
    "keepalives_count": 3,
    "connect_timeout": 5,
    "application_name": "studio_scheduling",
}

# pysqlite busy timeout, seconds. Bounds lock waits the same way lock_timeout does on Postgres.
_SQLITE_BUSY_TIMEOUT_S = 5


def _build_connect_args(config: Settings) -> dict[str, Any]:
    args = dict(_BASE_CONNECT_ARGS)
    args["options"] = f"-c statement_timeout={config.db_statement_timeout_ms}"
    return args


def _add_pool_events(engine: Engine, pool_name: str) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(_dbapi_connection: Any, _connection_record: Any) -> None:
        logger.debug("[%s] Database connection established", pool_name)

    @event.listens_for(engine, "checkout")
    def _on_checkout(
        _dbapi_connection: Any, _connection_record: Any, _connection_proxy: Any
    ) -> None:
        logger.debug("[%s] Connection checked out from pool", pool_name)

    @event.listens_for(engine, "checkin")
    def _on_checkin(_dbapi_connection: Any, _connection_record: Any) -> None:
        logger.debug("[%s] Connection returned to pool", pool_name)

    @event.listens_for(engine, "invalidate")
    def _on_invalidate(_dbapi_connection: Any, _connection_record: Any, exception: Any) -> None:
        logger.warning(
            "[%s] Connection invalidated",
            pool_name,
            extra={
                "event": "db_connection_invalidated",
                "exception": str(exception) if exception else "unknown",
            },
        )


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(
    config: Optional[Settings] = None,
    *,
    database_url: Optional[str] = None,
    pool_name: str = "API",
) -> Engine:
    """
    Build an engine for ``config`` (or the module defaults).

    The caller owns the returned engine and must ``dispose()`` it.
    """
    config = config or default_settings
    url = database_url or config.database_url

    if url.startswith("sqlite"):
        sqlite_kwargs: dict[str, Any] = {
            "connect_args": {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_S},
        }
        if url in {"sqlite://", "sqlite:///:memory:"}:
            # One shared connection, otherwise every checkout sees an empty database
            sqlite_kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=config.db_echo, future=True, **sqlite_kwargs)
        _enable_sqlite_foreign_keys(engine)
    else:
        engine = create_engine(
            url,
            echo=config.db_echo,
            poolclass=QueuePool,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_timeout=config.db_pool_timeout,
            pool_pre_ping=True,
            pool_use_lifo=True,
            future=True,
            connect_args=_build_connect_args(config),
        )

    _add_pool_events(engine, pool_name)
    return engine


__all__ = ["create_db_engine"]
