"""Participant rating endpoints (session cookie required).

POST /api/ratings                         - Save (merge) a rating
GET  /api/ratings?slug=&blindNumber=      - Own rating for a blind number
GET  /api/ratings/draft?slug=&blindNumber= - Own draft for a blind number
POST /api/ratings/draft                   - Replace own draft
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from blindtaste.api.app import get_db_session
from blindtaste.api.deps import require_session
from blindtaste.core.session import SessionData
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.types import (
    DraftRequest,
    DraftResponse,
    DraftView,
    OkResponse,
    RatingLookupResponse,
    RatingSavedResponse,
    RatingSubmission,
)
from blindtaste.tasting import lifecycle, participation, ratings

router = APIRouter(prefix="/ratings")


@router.post("", response_model=RatingSavedResponse)
def save_rating(
    request: RatingSubmission,
    session: DbSession = Depends(get_db_session),
    session_data: SessionData = Depends(require_session),
) -> RatingSavedResponse:
    """Save the session participant's rating for one blind number.

    Scores merge into a stored rating; a null score removes that criterion.

    Args:
        request: Blind number, scores and comment.
        session: Database session (injected).
        session_data: Verified participant session (injected).

    Returns:
        RatingSavedResponse with the rating ID.

    Raises:
        UnauthorizedError: Without a valid session (401).
        ForbiddenError: If the tasting is not open (403).
        InvalidInputError: On bad blind number or scores (400).
    """
    tasting = repo.get_tasting(session, session_data.tasting_id)
    if tasting is None:
        raise HTTPException(status_code=404, detail="Tasting not found")
    participant = participation.resolve_participant(session, tasting, session_data)

    result = ratings.submit_rating(
        session,
        tasting,
        ratings.RatingInput(
            participant_id=participant.participant_id,
            blind_number=request.blind_number,
            scores=request.scores,
            comment=request.comment,
        ),
    )
    return RatingSavedResponse(rating_id=result.rating_id, blind_number=result.blind_number)


@router.get("", response_model=RatingLookupResponse)
def get_rating(
    slug: str = Query(""),
    blind_number: int = Query(0, alias="blindNumber"),
    session: DbSession = Depends(get_db_session),
    session_data: SessionData = Depends(require_session),
) -> RatingLookupResponse:
    """Get the session participant's own rating for a blind number."""
    tasting = lifecycle.require_tasting(session, slug)
    participant = participation.resolve_participant(session, tasting, session_data)
    rating = ratings.get_own_rating(session, tasting, participant.participant_id, blind_number)

    response = RatingLookupResponse(
        found=rating is not None,
        slug=tasting.public_slug,
        tasting_id=tasting.tasting_id,
        participant_id=participant.participant_id,
        blind_number=blind_number,
        scores={},
        comment="",
    )
    if rating is not None:
        response.rating_id = rating.rating_id
        response.scores = rating.scores if isinstance(rating.scores, dict) else {}
        response.comment = rating.comment or ""
        response.created_at = rating.created_at
        response.updated_at = rating.updated_at
    return response


@router.get("/draft", response_model=DraftResponse)
def get_draft(
    slug: str = Query(""),
    blind_number: int = Query(0, alias="blindNumber"),
    session: DbSession = Depends(get_db_session),
    session_data: SessionData = Depends(require_session),
) -> DraftResponse:
    """Get the session participant's draft, or ``draft: null``."""
    tasting = lifecycle.require_tasting(session, slug)
    participant = participation.resolve_participant(session, tasting, session_data)
    draft = ratings.get_draft(session, tasting, participant.participant_id, blind_number)

    if draft is None:
        return DraftResponse(draft=None)
    return DraftResponse(
        draft=DraftView(
            scores=draft.scores if isinstance(draft.scores, dict) else {},
            comment=draft.comment,
            updated_at=draft.updated_at,
        )
    )


@router.post("/draft", response_model=OkResponse)
def save_draft(
    request: DraftRequest,
    session: DbSession = Depends(get_db_session),
    session_data: SessionData = Depends(require_session),
) -> OkResponse:
    """Replace the session participant's draft for a blind number."""
    tasting = lifecycle.require_tasting(session, request.slug)
    participant = participation.resolve_participant(session, tasting, session_data)
    ratings.save_draft(
        session,
        tasting,
        participant.participant_id,
        request.blind_number,
        request.scores,
        request.comment,
    )
    return OkResponse()
