# backend/studio/api/dependencies/auth.py
"""
Actor identity and role checks.

Authentication happens upstream; the gateway forwards the acting user's id
and role in ``X-Actor-Id`` / ``X-Actor-Role``. These dependencies turn those
headers into an ``ActorContext`` and enforce role capabilities before any
service is called. The core trusts the supplied id.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status

from ...core.enums import RoleName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
    actor_id: int
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN


def get_actor_context(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> ActorContext:
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity headers",
        )
    try:
        actor_id = int(x_actor_id)
        role = RoleName(x_actor_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor identity headers",
        )
    return ActorContext(actor_id=actor_id, role=role)


def require_roles(*roles: RoleName) -> Callable[..., ActorContext]:
    """Ensure the acting user holds at least one of the provided roles."""

    required = frozenset(roles)

    def checker(actor: ActorContext = Depends(get_actor_context)) -> ActorContext:
        if actor.role not in required:
            names = ", ".join(sorted(role.value for role in required))
            logger.info(
                "Role check failed",
                extra={"actor_id": actor.actor_id, "role": actor.role.value},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Actor lacks required role(s): {names}",
            )
        return actor

    return checker


def ensure_self_or_admin(actor: ActorContext, subject_id: int) -> None:
    """Guardians and teachers may only read their own views; admins read any."""
    if actor.is_admin or actor.actor_id == subject_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Actors may only access their own records",
    )
