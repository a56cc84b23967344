# backend/studio/models/user.py
"""
Directory models consumed (read-only) by the scheduling core.

Users, guardian links and teacher rosters are maintained by the external
participant/guardian directory; the core only reads them, except for the
participant cleanup path which removes a participant and its links.

Classes:
    User: Any person known to the studio (staff, guardian or participant)
    GuardianRelationship: Guardian responsible for a participant
    TeacherRoster: Participant assigned to a teacher's roster
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import RoleName
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class User(Base):
    """
    Person record supplied by the directory.

    Attributes:
        id: Primary key
        first_name / last_name: Display name
        email: Contact email (optional for young participants)
        phone_number: Contact phone (used for guardian contact fields)
        date_of_birth: Required for event eligibility
        role: One of RoleName
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'teacher', 'manager', 'student')",
            name="ck_users_role",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)

    guardian_links = relationship(
        "GuardianRelationship",
        foreign_keys="GuardianRelationship.participant_user_id",
        back_populates="participant",
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.role}>"


class GuardianRelationship(Base):
    """
    Guardian responsible for a participant.

    An adult participant who manages their own account is linked to themselves
    with ``is_self_managed=True`` rather than by sharing one identity for both
    roles.
    """

    __tablename__ = "guardian_relationships"
    __table_args__ = (
        UniqueConstraint(
            "guardian_user_id", "participant_user_id", name="uq_guardian_relationships_pair"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    guardian_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    participant_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    relationship_type = Column(String(50), nullable=True)
    is_self_managed = Column(Boolean, nullable=False, default=False)

    guardian = relationship("User", foreign_keys=[guardian_user_id])
    participant = relationship(
        "User", foreign_keys=[participant_user_id], back_populates="guardian_links"
    )

    def __repr__(self) -> str:
        return (
            f"<GuardianRelationship guardian={self.guardian_user_id} "
            f"participant={self.participant_user_id}>"
        )


class TeacherRoster(Base):
    """Participant assigned to a teacher."""

    __tablename__ = "teacher_rosters"
    __table_args__ = (
        UniqueConstraint(
            "teacher_user_id", "participant_user_id", name="uq_teacher_rosters_pair"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    participant_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    teacher = relationship("User", foreign_keys=[teacher_user_id])
    participant = relationship("User", foreign_keys=[participant_user_id])
