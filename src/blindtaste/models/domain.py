"""Domain models for the tasting service.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

# ============================================================================
# Tasting Domain
# ============================================================================

TastingStatus = Literal["draft", "open", "closed", "revealed"]

TASTING_STATUSES: tuple[str, ...] = ("draft", "open", "closed", "revealed")


@dataclass
class TastingEntity:
    """Domain model for a tasting event."""

    tasting_id: str
    public_slug: str
    title: str
    host_name: str
    status: TastingStatus
    wine_count: int
    max_participants: int | None = None
    pin_hash: str | None = None
    tasting_date: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def revealed(self) -> bool:
        return self.status == "revealed"


@dataclass
class CriterionEntity:
    """Domain model for a scoring criterion."""

    criterion_id: str
    tasting_id: str
    label: str
    order: int
    scale_min: float = 1
    scale_max: float = 10
    weight: float = 1.0
    is_active: bool = True


# ============================================================================
# Wine Domain
# ============================================================================

# Fields hidden from non-admin consumers until the tasting is revealed
WINE_IDENTITY_FIELDS: tuple[str, ...] = (
    "display_name",
    "owner_name",
    "winery",
    "grape",
    "vintage",
    "image_url",
    "image_path",
)


@dataclass
class WineEntity:
    """Domain model for a wine slot."""

    wine_id: str
    tasting_id: str
    blind_number: int | None
    is_active: bool = True
    serve_order: int | None = None
    display_name: str | None = None
    owner_name: str | None = None
    winery: str | None = None
    grape: str | None = None
    vintage: str | None = None
    image_url: str | None = None
    image_path: str | None = None


# ============================================================================
# Participant Domain
# ============================================================================


@dataclass
class ParticipantEntity:
    """Domain model for a tasting participant."""

    participant_id: str
    tasting_id: str
    name: str
    is_active: bool = True
    created_at: datetime | None = None


# ============================================================================
# Rating Domain
# ============================================================================


@dataclass
class RatingEntity:
    """Domain model for a stored rating.

    ``scores`` is kept as loaded from storage; it is only trusted after
    normalization.
    """

    rating_id: str
    tasting_id: str
    participant_id: str
    wine_id: str | None
    blind_number: int | None
    scores: Any = field(default_factory=dict)
    comment: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class DraftEntity:
    """Domain model for an auto-saved, unsubmitted rating."""

    tasting_id: str
    participant_id: str
    blind_number: int
    scores: dict[str, Any] = field(default_factory=dict)
    comment: str = ""
    updated_at: datetime | None = None
