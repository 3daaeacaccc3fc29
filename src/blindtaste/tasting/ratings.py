"""Rating submission for participants.

Handles score validation, rating upserts and drafts.
Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from blindtaste.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import (
    CriterionEntity,
    DraftEntity,
    RatingEntity,
    TastingEntity,
)

logger = logging.getLogger(__name__)


@dataclass
class RatingInput:
    """Input for rating submission."""

    participant_id: str
    blind_number: int
    scores: Mapping[str, Any] = field(default_factory=dict)
    comment: str = ""


@dataclass
class RatingResult:
    """Result of rating submission."""

    rating_id: str
    blind_number: int
    success: bool


def validate_scores(
    scores: Mapping[str, Any], criteria: Sequence[CriterionEntity]
) -> dict[str, float | None]:
    """Check submitted scores against the tasting's criteria.

    Pure function - no database access.

    Args:
        scores: Criterion ID -> score (None clears a stored score).
        criteria: Active criteria of the tasting.

    Returns:
        Scores as floats (or None), keyed by criterion ID.

    Raises:
        InvalidInputError: On unknown criteria, non-numbers or out-of-range values.
    """
    by_id = {c.criterion_id: c for c in criteria}
    validated: dict[str, float | None] = {}

    for criterion_id, value in scores.items():
        criterion = by_id.get(criterion_id)
        if criterion is None:
            raise InvalidInputError(f"Unknown criterion: {criterion_id}")
        if value is None:
            validated[criterion_id] = None
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputError(f"Score for {criterion.label} must be a number")
        number = float(value)
        if not math.isfinite(number):
            raise InvalidInputError(f"Score for {criterion.label} must be a number")
        if not criterion.scale_min <= number <= criterion.scale_max:
            raise InvalidInputError(
                f"Score for {criterion.label} must be within "
                f"{criterion.scale_min:g}..{criterion.scale_max:g}"
            )
        validated[criterion_id] = number

    return validated


def _check_blind_number(tasting: TastingEntity, blind_number: int) -> None:
    if isinstance(blind_number, bool) or not 1 <= blind_number <= tasting.wine_count:
        raise InvalidInputError("Invalid blindNumber")


def submit_rating(
    session: DbSession,
    tasting: TastingEntity,
    rating_input: RatingInput,
) -> RatingResult:
    """Create or merge a participant's rating for a wine.

    Args:
        session: Database session.
        tasting: Tasting the participant belongs to.
        rating_input: Rating data.

    Returns:
        RatingResult with rating ID.

    Raises:
        ForbiddenError: If the tasting is not open.
        InvalidInputError: On bad blind number or scores.
        NotFoundError: If no wine has the blind number.
    """
    if tasting.status != "open":
        raise ForbiddenError("Tasting not open")
    _check_blind_number(tasting, rating_input.blind_number)

    wine = repo.get_wine_by_blind_number(session, tasting.tasting_id, rating_input.blind_number)
    if wine is None:
        raise NotFoundError("Wine not found")

    criteria = [
        c for c in repo.get_criteria_for_tasting(session, tasting.tasting_id) if c.is_active
    ]
    scores = validate_scores(rating_input.scores, criteria)

    rating = repo.upsert_rating(
        session,
        tasting_id=tasting.tasting_id,
        participant_id=rating_input.participant_id,
        wine_id=wine.wine_id,
        blind_number=rating_input.blind_number,
        scores=scores,
        comment=rating_input.comment.strip() or None,
    )
    repo.commit(session)

    logger.info(
        f"Saved rating for wine {rating_input.blind_number} in {tasting.public_slug} "
        f"({len(scores)} scores)"
    )
    return RatingResult(
        rating_id=rating.rating_id,
        blind_number=rating_input.blind_number,
        success=True,
    )


def get_own_rating(
    session: DbSession, tasting: TastingEntity, participant_id: str, blind_number: int
) -> RatingEntity | None:
    """Get the participant's stored rating for a blind number."""
    if blind_number < 1:
        raise InvalidInputError("Missing slug or blindNumber")
    return repo.get_rating_for_participant(
        session, tasting.tasting_id, participant_id, blind_number
    )


def get_draft(
    session: DbSession, tasting: TastingEntity, participant_id: str, blind_number: int
) -> DraftEntity | None:
    """Get the participant's draft for a blind number."""
    if blind_number < 1:
        raise InvalidInputError("Invalid input")
    return repo.get_draft(session, tasting.tasting_id, participant_id, blind_number)


def save_draft(
    session: DbSession,
    tasting: TastingEntity,
    participant_id: str,
    blind_number: int,
    scores: Mapping[str, Any],
    comment: str,
) -> DraftEntity:
    """Replace the participant's draft for a blind number.

    Drafts are stored as entered; they are validated on submission.
    """
    if blind_number < 1:
        raise InvalidInputError("Invalid input")

    draft = repo.save_draft(
        session,
        DraftEntity(
            tasting_id=tasting.tasting_id,
            participant_id=participant_id,
            blind_number=blind_number,
            scores=dict(scores),
            comment=comment,
        ),
    )
    repo.commit(session)
    return draft
