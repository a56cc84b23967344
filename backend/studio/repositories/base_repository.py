# backend/studio/repositories/base_repository.py
"""
Base Repository Pattern for the studio scheduling core.

Provides the foundation for all repository classes with:
- Lookup, create and bulk delete shared by every table
- Type safety with generics

Repositories never commit. The service layer owns the transaction and
decides when work is committed or rolled back.
"""

import logging
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import get_dialect_name

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Concrete base repository with common data access patterns.

    Attributes:
        db: SQLAlchemy session (managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def get_by_id(self, id: int) -> Optional[T]:
        """Retrieve an entity by its primary key, or None."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error("Error getting %s by id %s: %s", self.model.__name__, id, e)
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}") from e

    def create(self, **kwargs) -> T:
        """
        Create a new entity and flush it to obtain its id.

        Does NOT commit. Constraint violations are raised as RepositoryException
        with the original IntegrityError chained as ``__cause__``.
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.logger.warning(
                "Integrity error creating %s: %s", self.model.__name__, exc.orig
            )
            raise RepositoryException(f"Integrity constraint violated: {exc.orig}") from exc
        return entity

    def delete_by_id(self, id: int) -> bool:
        """
        Delete a row by primary key.

        Returns False if the row is not found. Remaining references surface as
        RepositoryException chained to the IntegrityError.
        """
        return self._delete_where(self.model.id == id) > 0

    # Protected helper methods for use by subclasses

    def _delete_where(self, *criteria, model=None) -> int:
        """Bulk delete rows of ``model`` (default: this repository's model)."""
        target = model or self.model
        stmt = sa_delete(target).where(*criteria).execution_options(synchronize_session=False)
        try:
            result = self.db.execute(stmt)
        except IntegrityError as exc:
            self.logger.warning(
                "Cannot delete %s due to existing references: %s", target.__name__, exc.orig
            )
            raise RepositoryException(
                f"Cannot delete {target.__name__} due to existing references"
            ) from exc
        removed = int(result.rowcount or 0)
        if removed:
            # Identity-mapped copies of the removed rows must reload (and vanish)
            self.db.expire_all()
        return removed
