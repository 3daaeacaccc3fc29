"""Presentation of reports and wines.

Rounding happens here and only here; the engine keeps full precision.
Identity fields of a wine are only exposed to admins or once the tasting
is revealed.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from blindtaste.aggregation.engine import AggregateRow, Report
from blindtaste.models.domain import (
    WINE_IDENTITY_FIELDS,
    CriterionEntity,
    TastingEntity,
    WineEntity,
)
from blindtaste.models.types import (
    CriterionDetail,
    ReportRowView,
    ReportView,
    TastingHeader,
    WineView,
)

SCORE_QUANTUM = Decimal("0.01")


def round_score(value: float | None) -> float | None:
    """Round half-up to 2 decimals for display.

    Uses the shortest decimal representation of the float so that a
    value printed as 7.555 displays as 7.56.
    """
    if value is None:
        return None
    return float(Decimal(repr(value)).quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP))


def is_revealed(status: str) -> bool:
    return status == "revealed"


def wine_view(
    wine: WineEntity | None,
    blind_number: int | None,
    status: str,
    *,
    admin: bool = False,
) -> WineView:
    """Build the wine payload for a consumer.

    Args:
        wine: Wine slot, or None for a synthetic slot.
        blind_number: Blind number to show.
        status: Tasting status.
        admin: Admin consumers always see identity fields.
    """
    if wine is None:
        return WineView(blind_number=blind_number)

    fields: dict[str, object] = {"blind_number": blind_number, "is_active": wine.is_active}
    if admin or is_revealed(status):
        fields["serve_order"] = wine.serve_order
        for name in WINE_IDENTITY_FIELDS:
            fields[name] = getattr(wine, name)
    return WineView(**fields)


def criterion_detail(criterion: CriterionEntity) -> CriterionDetail:
    return CriterionDetail(
        id=criterion.criterion_id,
        label=criterion.label,
        order=criterion.order,
        scale_min=criterion.scale_min,
        scale_max=criterion.scale_max,
        weight=criterion.weight,
        is_active=criterion.is_active,
    )


def tasting_header(tasting: TastingEntity) -> TastingHeader:
    return TastingHeader(
        title=tasting.title,
        host_name=tasting.host_name,
        status=tasting.status,
        wine_count=tasting.wine_count,
    )


def row_view(row: AggregateRow, status: str, *, admin: bool = False) -> ReportRowView:
    """Serialize one aggregate row."""
    return ReportRowView(
        blind_number=row.blind_number,
        n_ratings=row.n_ratings,
        per_criteria_avg={
            criterion_id: round_score(avg) for criterion_id, avg in row.per_criterion_avg.items()
        },
        overall_avg=round_score(row.overall_avg),
        rank=row.rank,
        wine=wine_view(row.wine, row.blind_number, status, admin=admin),
    )


def report_view(report: Report, *, admin: bool = False) -> ReportView:
    """Serialize a report for admin or public consumers."""
    status = report.tasting.status
    return ReportView(
        public_slug=report.tasting.public_slug,
        status=status,
        revealed=is_revealed(status),
        strategy=report.strategy.value,
        tasting=tasting_header(report.tasting),
        criteria=[criterion_detail(c) for c in report.criteria],
        rows=[row_view(row, status, admin=admin) for row in report.rows],
        ranking=[row_view(row, status, admin=admin) for row in report.ranking],
        rating_count=report.rating_count,
    )
