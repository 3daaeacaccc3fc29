"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from blindtaste.db.schema import (
    Criterion,
    Participant,
    Rating,
    RatingDraft,
    Tasting,
    Wine,
)
from blindtaste.models.domain import (
    CriterionEntity,
    DraftEntity,
    ParticipantEntity,
    RatingEntity,
    TastingEntity,
    WineEntity,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _load_scores(text: str | None) -> Any:
    """Decode stored scores; undecodable payloads come back as None."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _dump_scores(scores: dict[str, Any]) -> str:
    return json.dumps(scores, sort_keys=True)


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _tasting_to_entity(tasting: Tasting) -> TastingEntity:
    """Convert SQLAlchemy Tasting to domain entity."""
    return TastingEntity(
        tasting_id=tasting.tasting_id,
        public_slug=tasting.public_slug,
        title=tasting.title,
        host_name=tasting.host_name,
        status=tasting.status,
        wine_count=tasting.wine_count,
        max_participants=tasting.max_participants,
        pin_hash=tasting.pin_hash,
        tasting_date=tasting.tasting_date,
        created_at=tasting.created_at,
        updated_at=tasting.updated_at,
    )


def _criterion_to_entity(criterion: Criterion) -> CriterionEntity:
    """Convert SQLAlchemy Criterion to domain entity."""
    return CriterionEntity(
        criterion_id=criterion.criterion_id,
        tasting_id=criterion.tasting_id,
        label=criterion.label,
        order=criterion.order,
        scale_min=criterion.scale_min,
        scale_max=criterion.scale_max,
        weight=criterion.weight,
        is_active=criterion.is_active,
    )


def _wine_to_entity(wine: Wine) -> WineEntity:
    """Convert SQLAlchemy Wine to domain entity."""
    return WineEntity(
        wine_id=wine.wine_id,
        tasting_id=wine.tasting_id,
        blind_number=wine.blind_number,
        is_active=wine.is_active,
        serve_order=wine.serve_order,
        display_name=wine.display_name,
        owner_name=wine.owner_name,
        winery=wine.winery,
        grape=wine.grape,
        vintage=wine.vintage,
        image_url=wine.image_url,
        image_path=wine.image_path,
    )


def _participant_to_entity(participant: Participant) -> ParticipantEntity:
    """Convert SQLAlchemy Participant to domain entity."""
    return ParticipantEntity(
        participant_id=participant.participant_id,
        tasting_id=participant.tasting_id,
        name=participant.name,
        is_active=participant.is_active,
        created_at=participant.created_at,
    )


def _rating_to_entity(rating: Rating) -> RatingEntity:
    """Convert SQLAlchemy Rating to domain entity."""
    return RatingEntity(
        rating_id=rating.rating_id,
        tasting_id=rating.tasting_id,
        participant_id=rating.participant_id,
        wine_id=rating.wine_id,
        blind_number=rating.blind_number,
        scores=_load_scores(rating.scores_json),
        comment=rating.comment,
        created_at=rating.created_at,
        updated_at=rating.updated_at,
    )


def _draft_to_entity(draft: RatingDraft) -> DraftEntity:
    """Convert SQLAlchemy RatingDraft to domain entity."""
    scores = _load_scores(draft.scores_json)
    return DraftEntity(
        tasting_id=draft.tasting_id,
        participant_id=draft.participant_id,
        blind_number=draft.blind_number,
        scores=scores if isinstance(scores, dict) else {},
        comment=draft.comment,
        updated_at=draft.updated_at,
    )


# ============================================================================
# Tasting Repository
# ============================================================================


def get_tasting(session: DbSession, tasting_id: str) -> TastingEntity | None:
    """Get tasting by ID."""
    tasting = session.query(Tasting).filter(Tasting.tasting_id == tasting_id).first()
    return _tasting_to_entity(tasting) if tasting else None


def get_tasting_by_slug(session: DbSession, public_slug: str) -> TastingEntity | None:
    """Get tasting by its public slug."""
    tasting = session.query(Tasting).filter(Tasting.public_slug == public_slug).first()
    return _tasting_to_entity(tasting) if tasting else None


def list_tastings(session: DbSession, limit: int = 200) -> list[TastingEntity]:
    """List tastings, newest first."""
    tastings = session.query(Tasting).order_by(Tasting.created_at.desc()).limit(limit).all()
    return [_tasting_to_entity(t) for t in tastings]


def create_tasting(session: DbSession, entity: TastingEntity) -> TastingEntity:
    """Create a new tasting."""
    tasting = Tasting(
        tasting_id=entity.tasting_id,
        public_slug=entity.public_slug,
        title=entity.title,
        host_name=entity.host_name,
        status=entity.status,
        pin_hash=entity.pin_hash,
        wine_count=entity.wine_count,
        max_participants=entity.max_participants,
        tasting_date=entity.tasting_date,
    )
    session.add(tasting)
    return entity


def update_tasting_meta(
    session: DbSession,
    tasting_id: str,
    *,
    title: str,
    host_name: str,
    max_participants: int,
    tasting_date: str | None,
) -> None:
    """Update editable tasting metadata."""
    tasting = session.query(Tasting).filter(Tasting.tasting_id == tasting_id).first()
    if tasting:
        tasting.title = title
        tasting.host_name = host_name
        tasting.max_participants = max_participants
        tasting.tasting_date = tasting_date
        tasting.updated_at = _now()


def update_tasting_status(session: DbSession, tasting_id: str, status: str) -> None:
    """Update tasting status."""
    tasting = session.query(Tasting).filter(Tasting.tasting_id == tasting_id).first()
    if tasting:
        tasting.status = status
        tasting.updated_at = _now()


def delete_tasting(session: DbSession, tasting_id: str) -> None:
    """Delete a tasting and every child record."""
    for model in (RatingDraft, Rating, Participant, Wine, Criterion):
        session.query(model).filter(model.tasting_id == tasting_id).delete(
            synchronize_session=False
        )
    session.query(Tasting).filter(Tasting.tasting_id == tasting_id).delete(
        synchronize_session=False
    )


# ============================================================================
# Criterion Repository
# ============================================================================


def get_criteria_for_tasting(session: DbSession, tasting_id: str) -> list[CriterionEntity]:
    """Get criteria ordered by ``order``, ties by insertion."""
    criteria = (
        session.query(Criterion)
        .filter(Criterion.tasting_id == tasting_id)
        .order_by(Criterion.order.asc(), Criterion.created_at.asc())
        .all()
    )
    return [_criterion_to_entity(c) for c in criteria]


def get_criterion(session: DbSession, tasting_id: str, criterion_id: str) -> CriterionEntity | None:
    """Get a criterion of a tasting."""
    criterion = (
        session.query(Criterion)
        .filter(Criterion.tasting_id == tasting_id, Criterion.criterion_id == criterion_id)
        .first()
    )
    return _criterion_to_entity(criterion) if criterion else None


def save_criterion(session: DbSession, entity: CriterionEntity) -> CriterionEntity:
    """Insert a criterion or overwrite the existing one with the same ID."""
    criterion = (
        session.query(Criterion).filter(Criterion.criterion_id == entity.criterion_id).first()
    )
    if criterion is None:
        criterion = Criterion(criterion_id=entity.criterion_id, tasting_id=entity.tasting_id)
        session.add(criterion)
    criterion.label = entity.label
    criterion.order = entity.order
    criterion.scale_min = entity.scale_min
    criterion.scale_max = entity.scale_max
    criterion.weight = entity.weight
    criterion.is_active = entity.is_active
    return entity


def delete_criterion(session: DbSession, tasting_id: str, criterion_id: str) -> bool:
    """Delete a criterion. Returns False if it did not exist."""
    deleted = (
        session.query(Criterion)
        .filter(Criterion.tasting_id == tasting_id, Criterion.criterion_id == criterion_id)
        .delete(synchronize_session=False)
    )
    return deleted > 0


# ============================================================================
# Wine Repository
# ============================================================================


def get_wines_for_tasting(session: DbSession, tasting_id: str) -> list[WineEntity]:
    """Get all wine slots of a tasting."""
    wines = session.query(Wine).filter(Wine.tasting_id == tasting_id).all()
    return [_wine_to_entity(w) for w in wines]


def get_wine_by_blind_number(
    session: DbSession, tasting_id: str, blind_number: int
) -> WineEntity | None:
    """Get the wine slot with the given blind number."""
    wine = (
        session.query(Wine)
        .filter(Wine.tasting_id == tasting_id, Wine.blind_number == blind_number)
        .first()
    )
    return _wine_to_entity(wine) if wine else None


def count_wines_for_tasting(session: DbSession, tasting_id: str) -> int:
    """Count wine slots of a tasting."""
    return session.query(Wine).filter(Wine.tasting_id == tasting_id).count()


def create_wine(session: DbSession, entity: WineEntity) -> WineEntity:
    """Create a new wine slot."""
    wine = Wine(
        wine_id=entity.wine_id,
        tasting_id=entity.tasting_id,
        blind_number=entity.blind_number,
        is_active=entity.is_active,
        serve_order=entity.serve_order,
        display_name=entity.display_name,
        owner_name=entity.owner_name,
        winery=entity.winery,
        grape=entity.grape,
        vintage=entity.vintage,
        image_url=entity.image_url,
        image_path=entity.image_path,
    )
    session.add(wine)
    return entity


def update_wine(session: DbSession, wine_id: str, fields: dict[str, Any]) -> None:
    """Set the given columns on a wine slot."""
    wine = session.query(Wine).filter(Wine.wine_id == wine_id).first()
    if wine:
        for name, value in fields.items():
            setattr(wine, name, value)
        wine.updated_at = _now()


# ============================================================================
# Participant Repository
# ============================================================================


def get_participant(
    session: DbSession, tasting_id: str, participant_id: str
) -> ParticipantEntity | None:
    """Get a participant of a tasting."""
    participant = (
        session.query(Participant)
        .filter(
            Participant.tasting_id == tasting_id,
            Participant.participant_id == participant_id,
        )
        .first()
    )
    return _participant_to_entity(participant) if participant else None


def get_participant_by_name(
    session: DbSession, tasting_id: str, name: str
) -> ParticipantEntity | None:
    """Get a participant of a tasting by display name."""
    participant = (
        session.query(Participant)
        .filter(Participant.tasting_id == tasting_id, Participant.name == name)
        .order_by(Participant.created_at.asc())
        .first()
    )
    return _participant_to_entity(participant) if participant else None


def get_participants_for_tasting(session: DbSession, tasting_id: str) -> list[ParticipantEntity]:
    """Get all participants of a tasting in join order."""
    participants = (
        session.query(Participant)
        .filter(Participant.tasting_id == tasting_id)
        .order_by(Participant.created_at.asc())
        .all()
    )
    return [_participant_to_entity(p) for p in participants]


def count_active_participants(session: DbSession, tasting_id: str) -> int:
    """Count active participants of a tasting."""
    return (
        session.query(Participant)
        .filter(Participant.tasting_id == tasting_id, Participant.is_active.is_(True))
        .count()
    )


def create_participant(session: DbSession, entity: ParticipantEntity) -> ParticipantEntity:
    """Create a new participant."""
    participant = Participant(
        participant_id=entity.participant_id,
        tasting_id=entity.tasting_id,
        name=entity.name,
        is_active=entity.is_active,
    )
    session.add(participant)
    return entity


def delete_participant(session: DbSession, tasting_id: str, participant_id: str) -> int:
    """Delete a participant with their ratings and drafts.

    Returns:
        Number of ratings deleted.
    """
    ratings_deleted = (
        session.query(Rating)
        .filter(Rating.tasting_id == tasting_id, Rating.participant_id == participant_id)
        .delete(synchronize_session=False)
    )
    session.query(RatingDraft).filter(
        RatingDraft.tasting_id == tasting_id, RatingDraft.participant_id == participant_id
    ).delete(synchronize_session=False)
    session.query(Participant).filter(
        Participant.tasting_id == tasting_id, Participant.participant_id == participant_id
    ).delete(synchronize_session=False)
    return ratings_deleted


# ============================================================================
# Rating Repository
# ============================================================================


def get_ratings_for_tasting(session: DbSession, tasting_id: str) -> list[RatingEntity]:
    """Get all ratings of a tasting."""
    ratings = session.query(Rating).filter(Rating.tasting_id == tasting_id).all()
    return [_rating_to_entity(r) for r in ratings]


def get_rating_for_participant(
    session: DbSession, tasting_id: str, participant_id: str, blind_number: int
) -> RatingEntity | None:
    """Get a participant's rating for a blind number."""
    rating = (
        session.query(Rating)
        .filter(
            Rating.tasting_id == tasting_id,
            Rating.participant_id == participant_id,
            Rating.blind_number == blind_number,
        )
        .first()
    )
    return _rating_to_entity(rating) if rating else None


def upsert_rating(
    session: DbSession,
    *,
    tasting_id: str,
    participant_id: str,
    wine_id: str,
    blind_number: int,
    scores: dict[str, float | None],
    comment: str | None,
) -> RatingEntity:
    """Create or merge a participant's rating for a wine.

    Runs as a single ``INSERT ... ON CONFLICT DO UPDATE`` so overlapping
    submissions for the same participant and wine never race. Scores are
    merged with SQLite's ``json_patch``: a None value removes that
    criterion's score. Undecodable stored scores are replaced.
    """
    rating_id = f"{participant_id}_{wine_id}"
    patch = json.dumps(scores, sort_keys=True)
    now = _now()

    stmt = sqlite_insert(Rating).values(
        rating_id=rating_id,
        tasting_id=tasting_id,
        participant_id=participant_id,
        wine_id=wine_id,
        blind_number=blind_number,
        scores_json=func.json_patch("{}", patch),
        comment=comment,
        created_at=now,
        updated_at=now,
    )
    merged = case(
        (func.json_valid(Rating.scores_json) == 1, func.json_patch(Rating.scores_json, patch)),
        else_=func.json_patch("{}", patch),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Rating.participant_id, Rating.wine_id],
        set_={
            "blind_number": stmt.excluded.blind_number,
            "scores_json": merged,
            "comment": stmt.excluded.comment,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    session.execute(stmt)

    rating = (
        session.query(Rating)
        .filter(Rating.participant_id == participant_id, Rating.wine_id == wine_id)
        .populate_existing()
        .one()
    )
    return _rating_to_entity(rating)


def get_draft(
    session: DbSession, tasting_id: str, participant_id: str, blind_number: int
) -> DraftEntity | None:
    """Get a participant's draft for a blind number."""
    draft = (
        session.query(RatingDraft)
        .filter(
            RatingDraft.tasting_id == tasting_id,
            RatingDraft.participant_id == participant_id,
            RatingDraft.blind_number == blind_number,
        )
        .first()
    )
    return _draft_to_entity(draft) if draft else None


def save_draft(session: DbSession, entity: DraftEntity) -> DraftEntity:
    """Insert or replace a draft."""
    draft_id = f"{entity.participant_id}_{entity.blind_number}"
    draft = session.query(RatingDraft).filter(RatingDraft.draft_id == draft_id).first()
    if draft is None:
        draft = RatingDraft(
            draft_id=draft_id,
            tasting_id=entity.tasting_id,
            participant_id=entity.participant_id,
            blind_number=entity.blind_number,
        )
        session.add(draft)
    draft.scores_json = _dump_scores(entity.scores)
    draft.comment = entity.comment
    draft.updated_at = _now()
    return _draft_to_entity(draft)


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()


def flush(session: DbSession) -> None:
    """Send pending changes without committing."""
    session.flush()


def rollback(session: DbSession) -> None:
    """Discard the current transaction."""
    session.rollback()
