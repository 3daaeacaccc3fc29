"""Report endpoints.

GET /api/admin/tastings/{slug}/report - Live admin report (weighted, full identity)
GET /api/tastings/{slug}/results      - Public results (identity gated on reveal)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from blindtaste.aggregation import OverallStrategy
from blindtaste.aggregation.summary import summarize_tasting
from blindtaste.aggregation.views import report_view
from blindtaste.api.app import get_db_session
from blindtaste.api.deps import require_admin
from blindtaste.db.repo import DbSession
from blindtaste.models.types import ReportView
from blindtaste.tasting import lifecycle

router = APIRouter()

NO_STORE = "no-store, max-age=0"


@router.get(
    "/admin/tastings/{slug}/report",
    response_model=ReportView,
    dependencies=[Depends(require_admin)],
)
def get_admin_report(
    slug: str,
    response: Response,
    session: DbSession = Depends(get_db_session),
) -> ReportView:
    """Get the live report for the host.

    Overall averages use the criterion-weighted strategy. Wine identities
    are always included.

    Args:
        slug: Tasting slug.
        response: Outgoing response (cache headers).
        session: Database session (injected).

    Returns:
        ReportView with rows in blind-number order and the ranking.
    """
    tasting = lifecycle.require_tasting(session, slug)
    report = summarize_tasting(session, tasting, OverallStrategy.WEIGHTED_CRITERION_MEAN)
    response.headers["Cache-Control"] = NO_STORE
    return report_view(report, admin=True)


@router.get("/tastings/{slug}/results", response_model=ReportView)
def get_results(
    slug: str,
    response: Response,
    session: DbSession = Depends(get_db_session),
) -> ReportView:
    """Get public results.

    Overall averages are the mean of per-rating means. Wine identities are
    null until the tasting is revealed.
    """
    tasting = lifecycle.require_tasting(session, slug)
    report = summarize_tasting(session, tasting, OverallStrategy.RATING_MEAN)
    response.headers["Cache-Control"] = NO_STORE
    return report_view(report)
