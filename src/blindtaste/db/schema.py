"""Database schema for the tasting service.

One table per document collection of the original layout
(tastings, criteria, wines, participants, ratings) plus rating drafts.
Unique constraints enforce the per-tasting identity invariants.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Tasting(Base):
    """A tasting event, publicly addressed by its slug."""

    __tablename__ = "tastings"

    tasting_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    public_slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    host_name: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")
    pin_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wine_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tasting_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class Criterion(Base):
    """Scoring dimension of a tasting."""

    __tablename__ = "criteria"

    criterion_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tasting_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tastings.tasting_id"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(128), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scale_min: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    scale_max: Mapped[float] = mapped_column(Float, nullable=False, default=10)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class Wine(Base):
    """Wine slot of a tasting.

    Invariant: UNIQUE(tasting_id, blind_number)
    """

    __tablename__ = "wines"

    wine_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tasting_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tastings.tasting_id"), nullable=False
    )
    blind_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    serve_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    owner_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    winery: Mapped[str | None] = mapped_column(String(256), nullable=True)
    grape: Mapped[str | None] = mapped_column(String(256), nullable=True)
    vintage: Mapped[str | None] = mapped_column(String(16), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    image_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("tasting_id", "blind_number", name="uq_wine_blind_number"),
    )


class Participant(Base):
    """Person who joined a tasting."""

    __tablename__ = "participants"

    participant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tasting_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tastings.tasting_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class Rating(Base):
    """Participant's scores for one wine (upserted).

    Invariant: UNIQUE(participant_id, wine_id)
    At most one rating per participant and wine.
    """

    __tablename__ = "ratings"

    rating_id: Mapped[str] = mapped_column(String(160), primary_key=True)
    tasting_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tastings.tasting_id"), nullable=False
    )
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    wine_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    blind_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scores_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("participant_id", "wine_id", name="uq_rating_participant_wine"),
    )


class RatingDraft(Base):
    """Auto-saved rating form state, never aggregated.

    Invariant: UNIQUE(participant_id, blind_number)
    """

    __tablename__ = "rating_drafts"

    draft_id: Mapped[str] = mapped_column(String(160), primary_key=True)
    tasting_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tastings.tasting_id"), nullable=False
    )
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    blind_number: Mapped[int] = mapped_column(Integer, nullable=False)
    scores_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("participant_id", "blind_number", name="uq_draft_participant_blind"),
    )
