"""Participant session and admin participant endpoints.

POST   /api/join                                              - Join a tasting
POST   /api/session/resume                                    - Restore a lost session
POST   /api/session/logout                                    - Clear the session cookie
GET    /api/admin/tastings/{slug}/participants                - List participants
DELETE /api/admin/tastings/{slug}/participants/{participant_id} - Remove a participant
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from blindtaste.api.app import get_db_session
from blindtaste.api.deps import (
    clear_session_cookie,
    get_settings,
    require_admin,
    require_session_secret,
    set_session_cookie,
)
from blindtaste.core.config import Settings
from blindtaste.core.session import SessionData
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.types import (
    JoinRequest,
    JoinResponse,
    OkResponse,
    ParticipantDeletedResponse,
    ParticipantDetail,
    ParticipantListResponse,
    ResumeRequest,
)
from blindtaste.tasting import lifecycle, participation

router = APIRouter()


@router.post(
    "/join", response_model=JoinResponse, dependencies=[Depends(require_session_secret)]
)
def join(
    request: JoinRequest,
    response: Response,
    session: DbSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> JoinResponse:
    """Join a tasting with its PIN and receive a session cookie.

    Args:
        request: Slug, PIN and optional display name.
        response: Outgoing response (cookie is attached here).
        session: Database session (injected).
        settings: Application settings (injected).

    Returns:
        JoinResponse with the new participant ID.

    Raises:
        ForbiddenError: If the tasting is not open (403).
        UnauthorizedError: If the PIN is wrong (401).
        ConflictError: If the tasting is full (409).
    """
    tasting = lifecycle.require_tasting(session, request.slug)
    participant = participation.join_tasting(
        session,
        tasting,
        pin=request.pin.strip(),
        name=request.name.strip() or request.alias.strip(),
        pin_salt=settings.pin_salt,
        default_max_participants=settings.default_max_participants,
    )

    set_session_cookie(
        response,
        SessionData(tasting_id=tasting.tasting_id, participant_id=participant.participant_id),
        settings,
    )
    return JoinResponse(participant_id=participant.participant_id)


@router.post(
    "/session/resume",
    response_model=JoinResponse,
    dependencies=[Depends(require_session_secret)],
)
def resume(
    request: ResumeRequest,
    response: Response,
    session: DbSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> JoinResponse:
    """Find a participant by name and PIN and re-issue the session cookie."""
    tasting = lifecycle.require_tasting(session, request.slug)
    participant = participation.resume_participant(
        session,
        tasting,
        name=request.name,
        pin=request.pin,
        pin_salt=settings.pin_salt,
    )

    set_session_cookie(
        response,
        SessionData(tasting_id=tasting.tasting_id, participant_id=participant.participant_id),
        settings,
    )
    return JoinResponse(participant_id=participant.participant_id)


@router.post("/session/logout", response_model=OkResponse)
def logout(response: Response, settings: Settings = Depends(get_settings)) -> OkResponse:
    clear_session_cookie(response, settings)
    return OkResponse()


@router.get(
    "/admin/tastings/{slug}/participants",
    response_model=ParticipantListResponse,
    dependencies=[Depends(require_admin)],
)
def list_participants(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> ParticipantListResponse:
    """List a tasting's participants in join order."""
    tasting = lifecycle.require_tasting(session, slug)
    participants = repo.get_participants_for_tasting(session, tasting.tasting_id)
    return ParticipantListResponse(
        count=len(participants),
        participants=[
            ParticipantDetail(
                id=p.participant_id,
                name=p.name,
                is_active=p.is_active,
                created_at=p.created_at,
            )
            for p in participants
        ],
    )


@router.delete(
    "/admin/tastings/{slug}/participants/{participant_id}",
    response_model=ParticipantDeletedResponse,
    dependencies=[Depends(require_admin)],
)
def delete_participant(
    slug: str,
    participant_id: str,
    session: DbSession = Depends(get_db_session),
) -> ParticipantDeletedResponse:
    """Remove a participant together with their ratings and drafts."""
    tasting = lifecycle.require_tasting(session, slug)
    ratings_deleted = participation.remove_participant(session, tasting, participant_id)
    return ParticipantDeletedResponse(ratings_deleted=ratings_deleted)
