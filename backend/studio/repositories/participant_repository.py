# backend/studio/repositories/participant_repository.py
"""
Participant Repository for the studio scheduling core.

Read access to the participant/guardian directory and the level catalog:
birth dates, derived current levels, guardian links and teacher rosters.
The only write path is the participant cleanup cascade.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..models.attendance import AttendanceRecord
from ..models.catalog import Level, ParticipantLevel
from ..models.event import EventBooking
from ..models.lesson import Enrollment
from ..models.user import GuardianRelationship, TeacherRoster, User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

ParticipantRow = Tuple[User, Optional[int], Optional[str]]


class ParticipantRepository(BaseRepository[User]):
    """
    Directory reads for participants.

    A participant's current level is the ``participant_levels`` row with the
    latest ``date_completed``, then latest ``created_at``, then highest id.
    """

    def __init__(self, db: Session):
        super().__init__(db, User)

    def _current_level_subquery(self):
        ranked = select(
            ParticipantLevel.participant_user_id.label("participant_user_id"),
            ParticipantLevel.level_id.label("level_id"),
            func.row_number()
            .over(
                partition_by=ParticipantLevel.participant_user_id,
                order_by=(
                    ParticipantLevel.date_completed.desc(),
                    ParticipantLevel.created_at.desc(),
                    ParticipantLevel.id.desc(),
                ),
            )
            .label("rn"),
        ).subquery("ranked_levels")

        return (
            select(
                ranked.c.participant_user_id,
                Level.id.label("level_id"),
                Level.name.label("level_name"),
            )
            .join(Level, Level.id == ranked.c.level_id)
            .where(ranked.c.rn == 1)
            .subquery("current_levels")
        )

    def list_participants(
        self, participant_ids: Optional[Iterable[int]] = None
    ) -> List[ParticipantRow]:
        """
        Participants with their current level id and name (None when they
        have completed no level), ordered by last then first name.

        ``participant_ids=None`` means every participant in the directory.
        """
        current = self._current_level_subquery()
        stmt = (
            select(User, current.c.level_id, current.c.level_name)
            .outerjoin(current, current.c.participant_user_id == User.id)
            .where(User.role == RoleName.STUDENT.value)
            .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
            .execution_options(populate_existing=True)
        )
        if participant_ids is not None:
            ids = list(participant_ids)
            if not ids:
                return []
            stmt = stmt.where(User.id.in_(ids))
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt)]

    def get_participant(self, participant_id: int) -> Optional[ParticipantRow]:
        rows = self.list_participants([participant_id])
        return rows[0] if rows else None

    def participant_ids_for_guardian(self, guardian_id: int) -> Set[int]:
        rows = self.db.execute(
            select(GuardianRelationship.participant_user_id).where(
                GuardianRelationship.guardian_user_id == guardian_id
            )
        )
        return {row[0] for row in rows}

    def participant_ids_for_teacher(self, teacher_id: int) -> Set[int]:
        rows = self.db.execute(
            select(TeacherRoster.participant_user_id).where(
                TeacherRoster.teacher_user_id == teacher_id
            )
        )
        return {row[0] for row in rows}

    def guardians_for(self, participant_ids: Iterable[int]) -> Dict[int, User]:
        """
        Primary guardian contact per participant.

        A separate guardian is preferred over a self-managed link; ties go to
        the lowest guardian id.
        """
        ids = list(participant_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(GuardianRelationship.participant_user_id, User)
            .join(User, User.id == GuardianRelationship.guardian_user_id)
            .where(GuardianRelationship.participant_user_id.in_(ids))
            .order_by(
                GuardianRelationship.participant_user_id,
                GuardianRelationship.is_self_managed.asc(),
                GuardianRelationship.guardian_user_id.asc(),
            )
        )
        guardians: Dict[int, User] = {}
        for participant_id, guardian in rows:
            guardians.setdefault(participant_id, guardian)
        return guardians

    def get_guardian_links(self, participant_id: int) -> List[GuardianRelationship]:
        return (
            self.db.query(GuardianRelationship)
            .filter(GuardianRelationship.participant_user_id == participant_id)
            .all()
        )

    def count_wards(self, guardian_id: int, excluding: Optional[int] = None) -> int:
        """Participants linked to ``guardian_id``, other than ``excluding``."""
        query = self.db.query(GuardianRelationship).filter(
            GuardianRelationship.guardian_user_id == guardian_id
        )
        if excluding is not None:
            query = query.filter(GuardianRelationship.participant_user_id != excluding)
        return query.count()

    def existing_level_ids(self, level_ids: Iterable[int]) -> Set[int]:
        ids = list(level_ids)
        if not ids:
            return set()
        rows = self.db.execute(select(Level.id).where(Level.id.in_(ids)))
        return {row[0] for row in rows}

    def delete_participant(self, participant_id: int) -> bool:
        """
        Remove a participant and everything hanging off it.

        Order: attendance records, enrollments, event bookings, level history,
        roster entries, guardian links, then the user row. Runs inside the
        caller's transaction.
        """
        enrollment_ids = select(Enrollment.id).where(
            Enrollment.participant_user_id == participant_id
        )
        self._delete_where(
            AttendanceRecord.enrollment_id.in_(enrollment_ids), model=AttendanceRecord
        )
        self._delete_where(Enrollment.participant_user_id == participant_id, model=Enrollment)
        self._delete_where(EventBooking.participant_user_id == participant_id, model=EventBooking)
        self._delete_where(
            ParticipantLevel.participant_user_id == participant_id, model=ParticipantLevel
        )
        self._delete_where(
            TeacherRoster.participant_user_id == participant_id, model=TeacherRoster
        )
        self._delete_where(
            GuardianRelationship.participant_user_id == participant_id,
            model=GuardianRelationship,
        )
        return self.delete_by_id(participant_id)

    def delete_guardian(self, guardian_id: int) -> bool:
        """Remove a guardian account that no longer has participants linked."""
        self._delete_where(
            or_(
                GuardianRelationship.guardian_user_id == guardian_id,
                GuardianRelationship.participant_user_id == guardian_id,
            ),
            model=GuardianRelationship,
        )
        return self.delete_by_id(guardian_id)
