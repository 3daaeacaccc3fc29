"""Joining a tasting and restoring participant sessions.

Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
import threading
import uuid

from blindtaste.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from blindtaste.core.security import is_valid_pin, verify_pin
from blindtaste.core.session import SessionData
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import ParticipantEntity, TastingEntity

logger = logging.getLogger(__name__)

# Serializes the capacity check and insert of concurrent joins
_join_lock = threading.Lock()


def join_tasting(
    session: DbSession,
    tasting: TastingEntity,
    *,
    pin: str,
    name: str,
    pin_salt: str,
    default_max_participants: int,
) -> ParticipantEntity:
    """Register a new participant.

    Raises:
        InvalidInputError: If the PIN is not 4 digits.
        ForbiddenError: If the tasting is not open.
        UnauthorizedError: If the PIN is wrong.
        ConflictError: If the tasting is full.
    """
    if not is_valid_pin(pin):
        raise InvalidInputError("Invalid input")
    if tasting.status != "open":
        raise ForbiddenError("Tasting not open")
    if not verify_pin(pin, tasting.pin_hash, pin_salt):
        raise UnauthorizedError("Invalid PIN")

    max_participants = tasting.max_participants
    if not max_participants or max_participants < 1:
        max_participants = default_max_participants

    with _join_lock:
        active = repo.count_active_participants(session, tasting.tasting_id)
        if active >= max_participants:
            raise ConflictError("Tasting full")

        participant = ParticipantEntity(
            participant_id=uuid.uuid4().hex,
            tasting_id=tasting.tasting_id,
            name=name.strip() or f"Participant {active + 1}",
        )
        repo.create_participant(session, participant)
        repo.flush(session)

        # Another writer may have joined between the count and the insert
        if repo.count_active_participants(session, tasting.tasting_id) > max_participants:
            repo.rollback(session)
            raise ConflictError("Tasting full")
        repo.commit(session)

    logger.info(f"Participant joined {tasting.public_slug} ({active + 1}/{max_participants})")
    return participant


def resume_participant(
    session: DbSession,
    tasting: TastingEntity,
    *,
    name: str,
    pin: str,
    pin_salt: str,
) -> ParticipantEntity:
    """Find an existing participant by name after checking the tasting PIN."""
    if not name.strip() or not pin.strip():
        raise InvalidInputError("Missing slug/name/pin")
    if not verify_pin(pin.strip(), tasting.pin_hash, pin_salt):
        raise UnauthorizedError("Invalid PIN")

    participant = repo.get_participant_by_name(session, tasting.tasting_id, name.strip())
    if participant is None:
        raise UnauthorizedError("Participant not found")
    if not participant.is_active:
        raise ForbiddenError("Participant inactive")
    return participant


def resolve_participant(
    session: DbSession, tasting: TastingEntity, session_data: SessionData
) -> ParticipantEntity:
    """Check that a session belongs to this tasting and its participant exists."""
    if session_data.tasting_id != tasting.tasting_id:
        raise ForbiddenError("Session does not match this tasting")

    participant = repo.get_participant(session, tasting.tasting_id, session_data.participant_id)
    if participant is None:
        raise UnauthorizedError("Not logged in")
    return participant


def remove_participant(session: DbSession, tasting: TastingEntity, participant_id: str) -> int:
    """Delete a participant and their ratings.

    Returns:
        Number of ratings deleted.
    """
    if repo.get_participant(session, tasting.tasting_id, participant_id) is None:
        raise NotFoundError("Participant not found")

    ratings_deleted = repo.delete_participant(session, tasting.tasting_id, participant_id)
    repo.commit(session)

    logger.info(
        f"Removed participant from {tasting.public_slug} ({ratings_deleted} ratings deleted)"
    )
    return ratings_deleted
