"""Rating normalization.

Converts raw rating records (repository entities or plain document
mappings) into strict ScoredRating values before they reach the
aggregation math. Anything that cannot be attributed to a blind number,
or whose scores are not a record of numbers, is dropped here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from blindtaste.models.domain import CriterionEntity, RatingEntity, WineEntity

logger = logging.getLogger(__name__)

RawRating = RatingEntity | Mapping[str, Any]


@dataclass(frozen=True)
class ScoredRating:
    """A rating the engine can aggregate.

    ``scores`` only holds finite values for known criteria, in criteria order.
    """

    blind_number: int
    scores: dict[str, float]


@dataclass
class WineLookup:
    """Index from either wine reference style to a wine slot."""

    by_id: dict[str, WineEntity] = field(default_factory=dict)
    by_blind_number: dict[int, WineEntity] = field(default_factory=dict)

    def resolve(self, wine_id: str | None, blind_number: int | None) -> int | None:
        """Resolve a rating's wine reference to a canonical blind number.

        A known wine ID wins. Otherwise a valid blind number is used as-is,
        even without a matching slot.
        """
        if wine_id:
            wine = self.by_id.get(wine_id)
            if wine is not None and wine.blind_number is not None:
                return wine.blind_number
        return blind_number


def build_wine_lookup(wines: Iterable[WineEntity]) -> WineLookup:
    """Build the lookup table once per report.

    When two slots share a blind number the first one wins.
    """
    lookup = WineLookup()
    for wine in wines:
        lookup.by_id[wine.wine_id] = wine
        if wine.blind_number is not None:
            lookup.by_blind_number.setdefault(wine.blind_number, wine)
    return lookup


def as_blind_number(value: Any) -> int | None:
    """Coerce a stored blind number; returns None unless a positive integer."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and value >= 1:
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() and int(text) >= 1:
            return int(text)
    return None


def parse_scores(raw: Any, criterion_ids: Sequence[str]) -> dict[str, float] | None:
    """Parse a scores record against the known criteria.

    Args:
        raw: Scores as stored.
        criterion_ids: Known criterion IDs in display order.

    Returns:
        Finite scores keyed by criterion ID in criteria order, or None when
        the record is malformed (not a mapping, or a known criterion holds a
        non-number). Unknown keys are ignored; None, NaN and infinite values
        count as not provided.
    """
    if not isinstance(raw, Mapping):
        return None

    scores: dict[str, float] = {}
    for criterion_id in criterion_ids:
        value = raw.get(criterion_id)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        number = float(value)
        if not math.isfinite(number):
            continue
        scores[criterion_id] = number
    return scores


def _read(raw: RawRating, attr: str, *keys: str) -> Any:
    if isinstance(raw, RatingEntity):
        return getattr(raw, attr)
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def normalize_rating(
    raw: RawRating, lookup: WineLookup, criterion_ids: Sequence[str]
) -> ScoredRating | None:
    """Normalize one rating record, or return None to drop it."""
    scores = parse_scores(_read(raw, "scores", "scores"), criterion_ids)
    if scores is None:
        return None

    wine_id = _read(raw, "wine_id", "wineId", "wine_id")
    blind_number = lookup.resolve(
        wine_id if isinstance(wine_id, str) else None,
        as_blind_number(_read(raw, "blind_number", "blindNumber", "blind_number")),
    )
    if blind_number is None:
        return None

    return ScoredRating(blind_number=blind_number, scores=scores)


def normalize_ratings(
    ratings: Iterable[RawRating],
    lookup: WineLookup,
    criteria: Sequence[CriterionEntity],
) -> list[ScoredRating]:
    """Normalize all rating records of a tasting, dropping unusable ones."""
    criterion_ids = [c.criterion_id for c in criteria]
    normalized: list[ScoredRating] = []
    dropped = 0

    for raw in ratings:
        rating = normalize_rating(raw, lookup, criterion_ids)
        if rating is None:
            dropped += 1
            continue
        normalized.append(rating)

    if dropped:
        logger.debug(f"Dropped {dropped} unusable rating record(s)")
    return normalized
