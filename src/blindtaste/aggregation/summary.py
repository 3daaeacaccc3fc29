"""Tasting report loading.

Fetches a tasting snapshot through repo and hands it to the pure engine.
"""

from __future__ import annotations

import logging

from blindtaste.aggregation.engine import OverallStrategy, Report, compute_report
from blindtaste.db import repo
from blindtaste.db.repo import DbSession
from blindtaste.models.domain import TastingEntity

logger = logging.getLogger(__name__)


def summarize_tasting(
    session: DbSession,
    tasting: TastingEntity,
    strategy: OverallStrategy = OverallStrategy.RATING_MEAN,
) -> Report:
    """Compute the live report for a tasting.

    Inactive criteria are left out of the aggregation.

    Args:
        session: Database session.
        tasting: Tasting resolved by the caller.
        strategy: Overall average computation.

    Returns:
        Report over the current snapshot.
    """
    criteria = [
        c for c in repo.get_criteria_for_tasting(session, tasting.tasting_id) if c.is_active
    ]
    wines = repo.get_wines_for_tasting(session, tasting.tasting_id)
    ratings = repo.get_ratings_for_tasting(session, tasting.tasting_id)

    report = compute_report(tasting, criteria, wines, ratings, strategy=strategy)

    logger.debug(
        f"Report for {tasting.public_slug}: {len(report.rows)} rows, "
        f"{len(report.ranking)} ranked, {report.rating_count} ratings ({strategy.value})"
    )
    return report
