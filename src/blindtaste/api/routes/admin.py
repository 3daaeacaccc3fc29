"""Admin tasting endpoints.

POST   /api/admin/tastings                             - Create tasting
GET    /api/admin/tastings                             - List tastings
GET    /api/admin/tastings/{slug}                      - Tasting detail with wine slots
PATCH  /api/admin/tastings/{slug}                      - Update metadata
POST   /api/admin/tastings/{slug}/status               - Set status
POST   /api/admin/tastings/{slug}/reveal               - Reveal identities
DELETE /api/admin/tastings/{slug}                      - Delete tasting
PATCH  /api/admin/tastings/{slug}/wines/{blind_number} - Patch a wine slot
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic.alias_generators import to_camel

from blindtaste.api.app import get_db_session
from blindtaste.api.deps import get_settings, require_admin
from blindtaste.core.config import Settings
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import TastingEntity, WineEntity
from blindtaste.models.types import (
    AdminTastingDetail,
    CreateTastingRequest,
    OkResponse,
    StatusResponse,
    StatusUpdateRequest,
    TastingCreatedResponse,
    TastingListResponse,
    TastingSummary,
    UpdateTastingMetaRequest,
    WineDetail,
    WinePatchRequest,
    WineUpdatedResponse,
)
from blindtaste.tasting import lifecycle

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _load_tasting(session: DbSession, slug: str) -> TastingEntity:
    tasting = repo.get_tasting_by_slug(session, slug)
    if tasting is None:
        raise HTTPException(status_code=404, detail="Tasting not found")
    return tasting


def _wine_detail(wine: WineEntity) -> WineDetail:
    return WineDetail(
        wine_id=wine.wine_id,
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


@router.post("/tastings", response_model=TastingCreatedResponse, status_code=201)
def create_tasting(
    request: CreateTastingRequest,
    session: DbSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> TastingCreatedResponse:
    """Create a tasting with its criteria and blind wine slots.

    Args:
        request: Tasting definition.
        session: Database session (injected).
        settings: Application settings (injected).

    Returns:
        IDs of the new tasting.

    Raises:
        ConflictError: If the slug already exists (409).
    """
    tasting = lifecycle.create_tasting(
        session,
        lifecycle.NewTasting(
            public_slug=request.public_slug,
            title=request.title,
            host_name=request.host_name,
            pin=request.pin,
            wine_count=request.wine_count,
            max_participants=request.max_participants,
            status=request.status,
            criteria=[
                lifecycle.CriterionInput(
                    label=c.label,
                    scale_min=c.scale_min,
                    scale_max=c.scale_max,
                    weight=c.weight,
                )
                for c in request.criteria
            ],
        ),
        pin_salt=settings.pin_salt,
    )
    return TastingCreatedResponse(
        tasting_id=tasting.tasting_id,
        public_slug=tasting.public_slug,
    )


@router.get("/tastings", response_model=TastingListResponse)
def list_tastings(session: DbSession = Depends(get_db_session)) -> TastingListResponse:
    """List tastings, newest first."""
    tastings = repo.list_tastings(session)
    return TastingListResponse(
        tastings=[
            TastingSummary(
                id=t.tasting_id,
                public_slug=t.public_slug,
                title=t.title,
                host_name=t.host_name,
                status=t.status,
                wine_count=t.wine_count,
                max_participants=t.max_participants,
                tasting_date=t.tasting_date,
                created_at=t.created_at,
                updated_at=t.updated_at,
            )
            for t in tastings
        ]
    )


@router.get("/tastings/{slug}", response_model=AdminTastingDetail)
def get_tasting(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> AdminTastingDetail:
    """Get a tasting with all wine slots, creating missing placeholder slots.

    Raises:
        HTTPException: If tasting not found (404).
    """
    tasting = _load_tasting(session, slug)
    wines = lifecycle.ensure_wine_slots(session, tasting)

    return AdminTastingDetail(
        tasting_id=tasting.tasting_id,
        public_slug=tasting.public_slug,
        title=tasting.title,
        host_name=tasting.host_name,
        status=tasting.status,
        wine_count=tasting.wine_count,
        max_participants=tasting.max_participants,
        tasting_date=tasting.tasting_date,
        wines=[_wine_detail(w) for w in wines],
    )


@router.patch("/tastings/{slug}", response_model=OkResponse)
def update_tasting(
    slug: str,
    request: UpdateTastingMetaRequest,
    session: DbSession = Depends(get_db_session),
) -> OkResponse:
    """Update title, host, participant cap and date."""
    tasting = _load_tasting(session, slug)
    lifecycle.update_meta(
        session,
        tasting,
        title=request.title,
        host_name=request.host_name,
        max_participants=request.max_participants,
        tasting_date=request.tasting_date,
    )
    return OkResponse()


@router.post("/tastings/{slug}/status", response_model=StatusResponse)
def set_status(
    slug: str,
    request: StatusUpdateRequest,
    session: DbSession = Depends(get_db_session),
) -> StatusResponse:
    """Set the tasting status; any status may follow any other."""
    tasting = _load_tasting(session, slug)
    status = lifecycle.set_status(session, tasting, request.status)
    return StatusResponse(public_slug=tasting.public_slug, status=status)


@router.post("/tastings/{slug}/reveal", response_model=StatusResponse)
def reveal_tasting(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> StatusResponse:
    """Reveal wine identities to everyone."""
    tasting = _load_tasting(session, slug)
    status = lifecycle.set_status(session, tasting, "revealed")
    return StatusResponse(public_slug=tasting.public_slug, status=status)


@router.delete("/tastings/{slug}", response_model=OkResponse)
def delete_tasting(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> OkResponse:
    """Delete a tasting with its criteria, wines, participants and ratings."""
    tasting = _load_tasting(session, slug)
    lifecycle.delete_tasting(session, tasting)
    return OkResponse()


@router.patch("/tastings/{slug}/wines/{blind_number}", response_model=WineUpdatedResponse)
def update_wine(
    slug: str,
    blind_number: int,
    request: WinePatchRequest,
    session: DbSession = Depends(get_db_session),
) -> WineUpdatedResponse:
    """Patch the fields present in the request body.

    Args:
        slug: Tasting slug.
        blind_number: Wine slot to patch.
        request: Fields to change; absent fields are kept.
        session: Database session (injected).

    Returns:
        The wine ID and the changed field names (camelCase).
    """
    tasting = _load_tasting(session, slug)
    patch = request.model_dump(exclude_unset=True)
    wine, changed = lifecycle.update_wine(session, tasting, blind_number, patch)

    return WineUpdatedResponse(
        public_slug=tasting.public_slug,
        blind_number=blind_number,
        wine_id=wine.wine_id,
        updated=[to_camel(name) for name in changed],
    )
