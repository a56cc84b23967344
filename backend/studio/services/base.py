# backend/studio/services/base.py
"""
Base Service Pattern for the studio scheduling core.

Provides common functionality for all service classes including:
- Transaction management (all-or-nothing units of work)
- Translation of store failures into domain exceptions
- Logging
- Performance monitoring
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    DomainException,
    IntegrityConflictException,
    RepositoryException,
    ServiceException,
    TransientStoreException,
    is_transient_db_error,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


def translate_store_error(exc: BaseException) -> DomainException:
    """
    Map a raw store failure to the domain taxonomy.

    Repository wrappers are unwrapped through ``__cause__`` so the original
    driver error decides the category.
    """
    candidates = [exc]
    if exc.__cause__ is not None:
        candidates.append(exc.__cause__)

    for candidate in candidates:
        if is_transient_db_error(candidate):
            return TransientStoreException(details={"error_type": type(candidate).__name__})
    for candidate in candidates:
        if isinstance(candidate, IntegrityError):
            return IntegrityConflictException(details={"constraint": str(candidate.orig)})
    return ServiceException(f"Database operation failed: {exc}")


class BaseService:
    """
    Base class for all service layer components.

    Services receive an explicit ``Session`` (owned by the caller) and an
    optional ``Settings`` override; nothing here reaches for global state.
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.settings = config or default_settings
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run a unit of work that commits together or not at all.

        Domain exceptions raised inside the block roll back and propagate
        unchanged. Store failures roll back and surface as
        TransientStoreException, IntegrityConflictException or
        ServiceException.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except DomainException:
            self._rollback()
            raise
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error("Transaction failed: %s", e)
            self._rollback()
            raise translate_store_error(e) from e
        except BaseException:
            self._rollback()
            raise

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as exc:
            # Connection already gone; the server discards the transaction with it.
            self.logger.warning("Rollback failed: %s", exc)

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("book")
            def book(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self, *args, **kwargs):
                    start_time = time.time()
                    success = False
                    try:
                        result = await func(self, *args, **kwargs)
                        success = True
                        return result
                    finally:
                        self._finish_measurement(operation_name, start_time, success)

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                finally:
                    self._finish_measurement(operation_name, start_time, success)

            return cast(F, wrapper)

        return decorator

    def _finish_measurement(self, operation: str, start_time: float, success: bool) -> None:
        elapsed = time.time() - start_time
        self._record_metric(operation, elapsed, success)
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning("Slow operation detected: %s took %.2fs", operation, elapsed)

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with structured context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        metrics = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        data = metrics.setdefault(
            operation,
            {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "min_time": float("inf"),
                "max_time": 0.0,
            },
        )
        data["count"] += 1
        data["total_time"] += elapsed
        data["min_time"] = min(data["min_time"], elapsed)
        data["max_time"] = max(data["max_time"], elapsed)
        if success:
            data["success_count"] += 1
        else:
            data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Per-operation timing summary for this service class."""
        result = {}
        for operation, data in BaseService._class_metrics.get(self.__class__.__name__, {}).items():
            count = data["count"]
            if count == 0:
                continue
            result[operation] = {
                "count": count,
                "avg_time": data["total_time"] / count,
                "min_time": data["min_time"],
                "max_time": data["max_time"],
                "success_rate": data["success_count"] / count,
                "failure_count": data["failure_count"],
            }
        return result

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
