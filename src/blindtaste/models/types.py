"""Pydantic models for the tasting API.

All models serialize with camelCase field names (``blindNumber``,
``perCriteriaAvg``) and accept either camelCase or snake_case on input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TastingStatusLiteral = Literal["draft", "open", "closed", "revealed"]

# Bound on criterion scale endpoints
SCALE_LIMIT = 1000


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OkResponse(ApiModel):
    """Bare acknowledgement."""

    ok: bool = True


# ============================================================================
# Criteria
# ============================================================================


class CriterionInput(ApiModel):
    """Criterion supplied when creating a tasting."""

    label: str = Field(min_length=1)
    scale_min: float = Field(default=1, ge=-SCALE_LIMIT, le=SCALE_LIMIT)
    scale_max: float = Field(default=10, ge=-SCALE_LIMIT, le=SCALE_LIMIT)
    weight: float = Field(default=1.0, ge=0)

    @model_validator(mode="after")
    def check_scale(self) -> "CriterionInput":
        if self.scale_min > self.scale_max:
            raise ValueError("scaleMin must not exceed scaleMax")
        return self


class CriterionUpsertRequest(CriterionInput):
    """Create or update a criterion; ``id`` selects an existing one."""

    id: str | None = None
    order: int = 0
    is_active: bool = True


class CriterionDetail(ApiModel):
    """Criterion as returned by the API."""

    id: str
    label: str
    order: int
    scale_min: float
    scale_max: float
    weight: float
    is_active: bool


class CriterionResponse(ApiModel):
    """Response for criterion upsert."""

    ok: bool = True
    criterion: CriterionDetail


class CriteriaListResponse(ApiModel):
    """Criteria of a tasting in display order."""

    ok: bool = True
    criteria: list[CriterionDetail]


# ============================================================================
# Tastings
# ============================================================================


class CreateTastingRequest(ApiModel):
    """Admin request to create a tasting."""

    public_slug: str = Field(min_length=1)
    title: str = Field(min_length=1)
    host_name: str = Field(min_length=1)
    pin: str
    wine_count: int = Field(default=10, ge=1, le=10)
    max_participants: int = Field(default=10, ge=1, le=10)
    status: TastingStatusLiteral = "open"
    criteria: list[CriterionInput] = Field(min_length=1, max_length=8)


class TastingCreatedResponse(ApiModel):
    """Response for tasting creation."""

    ok: bool = True
    tasting_id: str
    public_slug: str


class TastingSummary(ApiModel):
    """Tasting list entry for admins."""

    id: str
    public_slug: str
    title: str
    host_name: str
    status: TastingStatusLiteral
    wine_count: int
    max_participants: int | None
    tasting_date: str | None
    created_at: datetime | None
    updated_at: datetime | None


class TastingListResponse(ApiModel):
    """Admin tasting list."""

    ok: bool = True
    tastings: list[TastingSummary]


class TastingHeader(ApiModel):
    """Public tasting headline."""

    title: str
    host_name: str
    status: TastingStatusLiteral
    wine_count: int


class UpdateTastingMetaRequest(ApiModel):
    """Admin request to edit tasting metadata."""

    title: str = Field(min_length=1)
    host_name: str = Field(min_length=1)
    tasting_date: str | None = Field(default=None, pattern=r"^(\d{4}-\d{2}-\d{2})?$")
    max_participants: int = Field(ge=1, le=50)


class StatusUpdateRequest(ApiModel):
    """Admin request to set a tasting status."""

    status: TastingStatusLiteral


class StatusResponse(ApiModel):
    """Response for status changes."""

    ok: bool = True
    public_slug: str
    status: TastingStatusLiteral


# ============================================================================
# Wines
# ============================================================================


class WineView(ApiModel):
    """Wine as seen by a consumer; identity fields are None when redacted."""

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


class WineDetail(WineView):
    """Wine slot with its storage ID (admin)."""

    wine_id: str


class AdminTastingDetail(ApiModel):
    """Full tasting detail for admins."""

    ok: bool = True
    tasting_id: str
    public_slug: str
    title: str
    host_name: str
    status: TastingStatusLiteral
    wine_count: int
    max_participants: int | None
    tasting_date: str | None
    wines: list[WineDetail]


class WinePatchRequest(ApiModel):
    """Admin patch for a wine slot; only fields present are changed."""

    owner_name: str | None = None
    serve_order: int | None = None
    display_name: str | None = None
    winery: str | None = None
    grape: str | None = None
    vintage: str | int | None = None
    image_url: str | None = None
    image_path: str | None = None
    is_active: bool | None = None


class WineUpdatedResponse(ApiModel):
    """Response for wine patch."""

    ok: bool = True
    public_slug: str
    blind_number: int
    wine_id: str
    updated: list[str]


class PublicTastingResponse(ApiModel):
    """Public view of a tasting."""

    ok: bool = True
    public_slug: str
    tasting: TastingHeader
    revealed: bool
    criteria: list[CriterionDetail]
    wines: list[WineView]


class PublicWinesResponse(ApiModel):
    """Public wine list."""

    ok: bool = True
    public_slug: str
    status: TastingStatusLiteral
    wine_count: int
    wines: list[WineView]


# ============================================================================
# Participants & sessions
# ============================================================================


class JoinRequest(ApiModel):
    """Participant join request; ``name`` wins over ``alias``."""

    slug: str
    pin: str
    alias: str = ""
    name: str = ""


class JoinResponse(ApiModel):
    """Response for a successful join."""

    ok: bool = True
    participant_id: str


class ResumeRequest(ApiModel):
    """Participant request to restore a lost session."""

    slug: str
    name: str
    pin: str


class ParticipantDetail(ApiModel):
    """Participant as listed for admins."""

    id: str
    name: str
    is_active: bool
    created_at: datetime | None


class ParticipantListResponse(ApiModel):
    """Admin participant list."""

    ok: bool = True
    count: int
    participants: list[ParticipantDetail]


class ParticipantDeletedResponse(ApiModel):
    """Response for participant deletion."""

    ok: bool = True
    ratings_deleted: int


# ============================================================================
# Ratings
# ============================================================================


class RatingSubmission(ApiModel):
    """Participant rating for one blind number.

    ``scores`` is checked against the tasting's criteria by the domain layer.
    """

    blind_number: int
    scores: dict[str, Any] = Field(default_factory=dict)
    comment: str = ""


class RatingSavedResponse(ApiModel):
    """Response for rating submission."""

    ok: bool = True
    rating_id: str
    blind_number: int


class RatingLookupResponse(ApiModel):
    """A participant's own rating for a blind number."""

    ok: bool = True
    found: bool
    slug: str
    tasting_id: str
    participant_id: str
    blind_number: int
    rating_id: str | None = None
    scores: dict[str, Any]
    comment: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DraftRequest(ApiModel):
    """Auto-saved rating form state."""

    slug: str
    blind_number: int = Field(ge=1)
    scores: dict[str, Any] = Field(default_factory=dict)
    comment: str = ""


class DraftView(ApiModel):
    """Stored draft."""

    scores: dict[str, Any]
    comment: str
    updated_at: datetime | None


class DraftResponse(ApiModel):
    """Response for draft lookup."""

    ok: bool = True
    draft: DraftView | None


# ============================================================================
# Reports
# ============================================================================


class ReportRowView(ApiModel):
    """One wine's aggregates, averages rounded to 2 decimals."""

    blind_number: int | None
    n_ratings: int
    per_criteria_avg: dict[str, float | None]
    overall_avg: float | None
    rank: int | None
    wine: WineView


class ReportView(ApiModel):
    """Serialized tasting report."""

    ok: bool = True
    public_slug: str
    status: TastingStatusLiteral
    revealed: bool
    strategy: Literal["rating_mean", "weighted_criterion_mean"]
    tasting: TastingHeader
    criteria: list[CriterionDetail]
    rows: list[ReportRowView]
    ranking: list[ReportRowView]
    rating_count: int
