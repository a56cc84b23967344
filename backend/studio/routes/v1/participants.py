# backend/studio/routes/v1/participants.py
"""
Participant cleanup routes - API v1

Endpoints:
    DELETE /{participant_id}?remove_guardian=   → Remove a participant and its records
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import ActorContext, get_participant_service, require_roles
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...schemas.participant import ParticipantRemovalResult
from ...services.participant_service import ParticipantService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["participants-v1"])


@router.delete("/{participant_id}", response_model=ParticipantRemovalResult)
async def remove_participant(
    participant_id: int,
    remove_guardian: bool = Query(False, description="Also remove the sole guardian account"),
    actor: ActorContext = Depends(require_roles(RoleName.ADMIN)),
    service: ParticipantService = Depends(get_participant_service),
) -> ParticipantRemovalResult:
    try:
        return await asyncio.to_thread(
            service.remove_participant, participant_id, remove_guardian=remove_guardian
        )
    except DomainException as e:
        handle_domain_exception(e)
