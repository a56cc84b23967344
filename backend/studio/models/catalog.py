# backend/studio/models/catalog.py
"""
Curriculum catalog models: instruments, levels and level history.

The catalog is maintained outside the core. A participant's current level is
never stored; it is derived from ``participant_levels`` (latest
``date_completed``, then latest ``created_at``).
"""

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from .types import UTCDateTime


class Instrument(Base):
    """Lesson subject."""

    __tablename__ = "instruments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Instrument {self.name}>"


class Level(Base):
    """Curriculum level, ordered by ``level_number``."""

    __tablename__ = "levels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    level_number = Column(Integer, nullable=False, index=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Level {self.level_number} {self.name}>"


class ParticipantLevel(Base):
    """One completed level in a participant's history."""

    __tablename__ = "participant_levels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=False)
    date_completed = Column(Date, nullable=False)
    recorded_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)

    level = relationship("Level")
