# backend/studio/services/participant_service.py
"""
Participant Service: removes a participant and its dependent records.

This is the one place the core writes to the directory. Everything a
participant owns is removed in dependency order inside one transaction.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.enums import RoleName
from ..core.exceptions import IntegrityConflictException
from ..repositories.factory import RepositoryFactory
from ..schemas.participant import ParticipantRemovalResult
from .base import BaseService

logger = logging.getLogger(__name__)


class ParticipantService(BaseService):
    def __init__(self, db: Session, config: Optional[Settings] = None):
        super().__init__(db, config)
        self.participant_repository = RepositoryFactory.create_participant_repository(db)

    @BaseService.measure_operation("remove_participant")
    def remove_participant(
        self, participant_id: int, *, remove_guardian: bool = False
    ) -> ParticipantRemovalResult:
        """
        Remove a participant with attendance, enrollments, bookings, level
        history, roster entries and guardian links.

        With ``remove_guardian`` the participant's sole guardian account goes
        too. A guardian still responsible for other participants blocks the
        whole operation.

        Raises:
            IntegrityConflictException: A guardian still has participants, or
                the store reports remaining references
        """
        with self.transaction():
            user = self.participant_repository.get_by_id(participant_id)
            if user is None:
                return ParticipantRemovalResult(participant_id=participant_id, removed=False)

            if user.role == RoleName.MANAGER.value and self.participant_repository.count_wards(
                participant_id, excluding=participant_id
            ):
                raise IntegrityConflictException(
                    "Guardian still has participants linked",
                    details={"guardian_id": participant_id},
                )

            guardian_id = None
            if remove_guardian:
                links = [
                    link
                    for link in self.participant_repository.get_guardian_links(participant_id)
                    if link.guardian_user_id != participant_id
                ]
                if links:
                    guardian_id = links[0].guardian_user_id
                    if len(links) > 1 or self.participant_repository.count_wards(
                        guardian_id, excluding=participant_id
                    ):
                        raise IntegrityConflictException(
                            "Guardian still has other participants linked",
                            details={
                                "guardian_id": guardian_id,
                                "code": "remove_guardian_account",
                            },
                        )

            removed = self.participant_repository.delete_participant(participant_id)
            guardian_removed = False
            if guardian_id is not None:
                guardian_removed = self.participant_repository.delete_guardian(guardian_id)

        self.log_operation(
            "remove_participant",
            participant_id=participant_id,
            guardian_id=guardian_id,
            guardian_removed=guardian_removed,
        )
        return ParticipantRemovalResult(
            participant_id=participant_id,
            removed=removed,
            guardian_removed=guardian_removed,
            guardian_id=guardian_id,
        )
