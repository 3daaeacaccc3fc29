"""Tasting report computation.

Pure functions - no database access, no configuration. Takes a fully
fetched snapshot (tasting, criteria, wines, ratings) and produces one
aggregate row per wine slot plus the ranking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Sequence

from blindtaste.aggregation.normalize import (
    RawRating,
    ScoredRating,
    build_wine_lookup,
    normalize_ratings,
)
from blindtaste.core.errors import NotFoundError
from blindtaste.models.domain import CriterionEntity, TastingEntity, WineEntity


class OverallStrategy(str, Enum):
    """How a wine's overall average is computed.

    RATING_MEAN: mean of each rating's own average (participant results).
    WEIGHTED_CRITERION_MEAN: weighted mean of per-criterion averages
        (admin live ranking).
    """

    RATING_MEAN = "rating_mean"
    WEIGHTED_CRITERION_MEAN = "weighted_criterion_mean"


@dataclass
class WineAccumulator:
    """Running sums for one blind number."""

    criterion_sum: dict[str, float] = field(default_factory=dict)
    criterion_count: dict[str, int] = field(default_factory=dict)
    overall_sum: float = 0.0
    overall_count: int = 0
    n_ratings: int = 0

    def add(self, rating: ScoredRating) -> None:
        if not rating.scores:
            return

        self.n_ratings += 1
        for criterion_id, value in rating.scores.items():
            self.criterion_sum[criterion_id] = self.criterion_sum.get(criterion_id, 0.0) + value
            self.criterion_count[criterion_id] = self.criterion_count.get(criterion_id, 0) + 1

        # One data point per rating, however many criteria it scored
        self.overall_sum += sum(rating.scores.values()) / len(rating.scores)
        self.overall_count += 1

    def criterion_averages(self, criteria: Sequence[CriterionEntity]) -> dict[str, float | None]:
        averages: dict[str, float | None] = {}
        for criterion in criteria:
            count = self.criterion_count.get(criterion.criterion_id, 0)
            averages[criterion.criterion_id] = (
                self.criterion_sum[criterion.criterion_id] / count if count > 0 else None
            )
        return averages


@dataclass
class AggregateRow:
    """Aggregated scores for one wine slot.

    ``wine`` is None for synthetic slots (blind numbers with no wine record).
    """

    blind_number: int | None
    wine: WineEntity | None
    n_ratings: int
    per_criterion_avg: dict[str, float | None]
    overall_avg: float | None
    rank: int | None = None

    @property
    def synthetic(self) -> bool:
        return self.wine is None


@dataclass
class Report:
    """Full report for one tasting."""

    tasting: TastingEntity
    criteria: list[CriterionEntity]
    rows: list[AggregateRow]
    ranking: list[AggregateRow]
    rating_count: int
    strategy: OverallStrategy


def mean_of_rating_means(
    acc: WineAccumulator,
    per_criterion_avg: dict[str, float | None],
    criteria: Sequence[CriterionEntity],
) -> float | None:
    """Average of per-rating averages."""
    if acc.overall_count == 0:
        return None
    return acc.overall_sum / acc.overall_count


def weighted_criterion_mean(
    acc: WineAccumulator,
    per_criterion_avg: dict[str, float | None],
    criteria: Sequence[CriterionEntity],
) -> float | None:
    """Weighted mean of per-criterion averages.

    Only criteria with a non-null average take part. Returns None when no
    criterion has an average or their weights sum to zero.
    """
    weighted_sum = 0.0
    weight_total = 0.0
    for criterion in criteria:
        avg = per_criterion_avg.get(criterion.criterion_id)
        if avg is None:
            continue
        weight = 1.0 if criterion.weight is None else float(criterion.weight)
        weighted_sum += avg * weight
        weight_total += weight

    if weight_total == 0:
        return None
    return weighted_sum / weight_total


OverallFn = Callable[
    [WineAccumulator, dict[str, float | None], Sequence[CriterionEntity]], float | None
]

OVERALL_STRATEGIES: dict[OverallStrategy, OverallFn] = {
    OverallStrategy.RATING_MEAN: mean_of_rating_means,
    OverallStrategy.WEIGHTED_CRITERION_MEAN: weighted_criterion_mean,
}


def order_criteria(criteria: Iterable[CriterionEntity]) -> list[CriterionEntity]:
    """Sort criteria by ``order``; ties keep their input order."""
    return sorted(criteria, key=lambda c: c.order)


def rank_rows(rows: Sequence[AggregateRow]) -> list[AggregateRow]:
    """Assign ranks and return the ranking.

    Rows without an overall average get rank None and are left out.
    Ties on the (unrounded) average go to the lower blind number.
    """
    ranked = sorted(
        (row for row in rows if row.overall_avg is not None),
        key=lambda row: (-row.overall_avg, row.blind_number),
    )
    for row in rows:
        row.rank = None
    for position, row in enumerate(ranked, start=1):
        row.rank = position
    return ranked


def _collect_slots(
    tasting: TastingEntity,
    wines: Sequence[WineEntity],
    ratings: Sequence[ScoredRating],
) -> tuple[dict[int, WineEntity | None], list[WineEntity]]:
    """Gather every blind number a report must show.

    Returns numbered slots (wine or None for synthetic) and wines that
    carry no blind number.
    """
    numbered: dict[int, WineEntity | None] = {}
    unnumbered: list[WineEntity] = []

    for wine in wines:
        if wine.blind_number is None:
            unnumbered.append(wine)
        elif numbered.get(wine.blind_number) is None:
            numbered[wine.blind_number] = wine

    for blind_number in range(1, max(tasting.wine_count or 0, 0) + 1):
        numbered.setdefault(blind_number, None)

    for rating in ratings:
        numbered.setdefault(rating.blind_number, None)

    return numbered, unnumbered


def compute_report(
    tasting: TastingEntity | None,
    criteria: Sequence[CriterionEntity],
    wines: Sequence[WineEntity],
    ratings: Sequence[RawRating],
    strategy: OverallStrategy = OverallStrategy.RATING_MEAN,
) -> Report:
    """Compute the aggregate report for a tasting.

    Args:
        tasting: Tasting context (status, declared wine count).
        criteria: Criteria to aggregate; sorted by ``order`` here.
        wines: All wine slots of the tasting.
        ratings: All rating records, referencing wines by ID or blind number.
        strategy: Overall average computation.

    Returns:
        Report with rows ordered by blind number and the ranking.

    Raises:
        NotFoundError: If tasting is None.
    """
    if tasting is None:
        raise NotFoundError("Tasting not found")

    ordered = order_criteria(criteria)
    lookup = build_wine_lookup(wines)
    scored = normalize_ratings(ratings, lookup, ordered)

    accumulators: dict[int, WineAccumulator] = {}
    for rating in scored:
        accumulators.setdefault(rating.blind_number, WineAccumulator()).add(rating)

    numbered, unnumbered = _collect_slots(tasting, wines, scored)
    overall_fn = OVERALL_STRATEGIES[strategy]

    rows: list[AggregateRow] = []
    slots: list[tuple[int | None, WineEntity | None]] = [
        (blind_number, numbered[blind_number]) for blind_number in sorted(numbered)
    ]
    slots.extend((None, wine) for wine in unnumbered)

    for blind_number, wine in slots:
        acc = accumulators.get(blind_number) if blind_number is not None else None
        acc = acc or WineAccumulator()
        per_criterion_avg = acc.criterion_averages(ordered)
        rows.append(
            AggregateRow(
                blind_number=blind_number,
                wine=wine,
                n_ratings=acc.n_ratings,
                per_criterion_avg=per_criterion_avg,
                overall_avg=overall_fn(acc, per_criterion_avg, ordered),
            )
        )

    ranking = rank_rows(rows)

    return Report(
        tasting=tasting,
        criteria=ordered,
        rows=rows,
        ranking=ranking,
        rating_count=len(ratings),
        strategy=strategy,
    )
