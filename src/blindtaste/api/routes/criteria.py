"""Admin criteria endpoints.

GET    /api/admin/tastings/{slug}/criteria                - List criteria
POST   /api/admin/tastings/{slug}/criteria                - Create or update a criterion
DELETE /api/admin/tastings/{slug}/criteria/{criterion_id} - Delete a criterion
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from blindtaste.aggregation.engine import order_criteria
from blindtaste.aggregation.views import criterion_detail
from blindtaste.api.app import get_db_session
from blindtaste.api.deps import require_admin
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.types import (
    CriteriaListResponse,
    CriterionResponse,
    CriterionUpsertRequest,
    OkResponse,
)
from blindtaste.tasting import lifecycle

router = APIRouter(prefix="/admin/tastings/{slug}/criteria", dependencies=[Depends(require_admin)])


@router.get("", response_model=CriteriaListResponse)
def list_criteria(
    slug: str,
    session: DbSession = Depends(get_db_session),
) -> CriteriaListResponse:
    """List all criteria, active or not, in display order."""
    tasting = lifecycle.require_tasting(session, slug)
    criteria = order_criteria(repo.get_criteria_for_tasting(session, tasting.tasting_id))
    return CriteriaListResponse(criteria=[criterion_detail(c) for c in criteria])


@router.post("", response_model=CriterionResponse)
def upsert_criterion(
    slug: str,
    request: CriterionUpsertRequest,
    session: DbSession = Depends(get_db_session),
) -> CriterionResponse:
    """Create a criterion, or update the one named by ``id``.

    Raises:
        NotFoundError: If ``id`` names no criterion of this tasting (404).
    """
    tasting = lifecycle.require_tasting(session, slug)
    criterion = lifecycle.upsert_criterion(
        session,
        tasting,
        lifecycle.CriterionInput(
            label=request.label,
            scale_min=request.scale_min,
            scale_max=request.scale_max,
            weight=request.weight,
            order=request.order,
            is_active=request.is_active,
            criterion_id=request.id,
        ),
    )
    return CriterionResponse(criterion=criterion_detail(criterion))


@router.delete("/{criterion_id}", response_model=OkResponse)
def delete_criterion(
    slug: str,
    criterion_id: str,
    session: DbSession = Depends(get_db_session),
) -> OkResponse:
    tasting = lifecycle.require_tasting(session, slug)
    lifecycle.delete_criterion(session, tasting, criterion_id)
    return OkResponse()
