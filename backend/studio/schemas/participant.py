"""Schemas for participant directory cleanup."""

from typing import Optional

from ._strict_base import StrictModel


class ParticipantRemovalResult(StrictModel):
    participant_id: int
    removed: bool
    guardian_removed: bool = False
    guardian_id: Optional[int] = None
