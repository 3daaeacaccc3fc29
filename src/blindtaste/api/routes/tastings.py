"""Public tasting endpoints.

GET /api/tastings/{slug}       - Tasting headline, active criteria, redacted wines
GET /api/tastings/{slug}/wines - Wine list, identities hidden until reveal
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from blindtaste.aggregation.engine import order_criteria
from blindtaste.aggregation.views import criterion_detail, is_revealed, tasting_header, wine_view
from blindtaste.api.app import get_db_session
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import TastingEntity
from blindtaste.models.types import PublicTastingResponse, PublicWinesResponse, WineView
from blindtaste.tasting import lifecycle

router = APIRouter()


def _public_wines(session: DbSession, tasting: TastingEntity) -> list[WineView]:
    wines = repo.get_wines_for_tasting(session, tasting.tasting_id)
    wines.sort(key=lambda w: (w.blind_number is None, w.blind_number or 0))
    return [wine_view(w, w.blind_number, tasting.status) for w in wines]


@router.get("/tastings/{slug}", response_model=PublicTastingResponse)
def get_public_tasting(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> PublicTastingResponse:
    """Get what participants see of a tasting.

    Args:
        slug: Public tasting slug.
        session: Database session (injected).

    Returns:
        PublicTastingResponse; wine identities are None unless revealed.
    """
    tasting = lifecycle.require_tasting(session, slug)
    criteria = order_criteria(
        c for c in repo.get_criteria_for_tasting(session, tasting.tasting_id) if c.is_active
    )

    return PublicTastingResponse(
        public_slug=tasting.public_slug,
        tasting=tasting_header(tasting),
        revealed=is_revealed(tasting.status),
        criteria=[criterion_detail(c) for c in criteria],
        wines=_public_wines(session, tasting),
    )


@router.get("/tastings/{slug}/wines", response_model=PublicWinesResponse)
def list_public_wines(
    slug: str,
    response: Response,
    session: DbSession = Depends(get_db_session),
) -> PublicWinesResponse:
    """List wine slots; identities appear once the tasting is revealed."""
    tasting = lifecycle.require_tasting(session, slug)
    response.headers["Cache-Control"] = "no-store, max-age=0"

    return PublicWinesResponse(
        public_slug=tasting.public_slug,
        status=tasting.status,
        wine_count=tasting.wine_count,
        wines=_public_wines(session, tasting),
    )
