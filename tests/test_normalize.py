"""Tests for rating normalization."""

import math

from blindtaste.aggregation.normalize import (
    ScoredRating,
    as_blind_number,
    build_wine_lookup,
    normalize_rating,
    normalize_ratings,
    parse_scores,
)
from blindtaste.models.domain import CriterionEntity, RatingEntity, WineEntity

CRITERIA = ["nose", "taste"]


def _wine(wine_id, blind_number):
    return WineEntity(wine_id=wine_id, tasting_id="t1", blind_number=blind_number)


class TestParseScores:
    """Scores records are filtered against known criteria."""

    def test_known_numbers_kept_in_criteria_order(self):
        assert parse_scores({"taste": 6, "nose": 8.5}, CRITERIA) == {"nose": 8.5, "taste": 6.0}

    def test_unknown_keys_ignored(self):
        assert parse_scores({"nose": 8, "finish": 9}, CRITERIA) == {"nose": 8.0}

    def test_none_nan_and_inf_treated_as_missing(self):
        scores = {"nose": None, "taste": math.nan}
        assert parse_scores(scores, CRITERIA) == {}
        assert parse_scores({"nose": math.inf, "taste": 7}, CRITERIA) == {"taste": 7.0}

    def test_non_mapping_is_malformed(self):
        assert parse_scores(None, CRITERIA) is None
        assert parse_scores([8, 6], CRITERIA) is None
        assert parse_scores("8", CRITERIA) is None

    def test_non_number_for_known_criterion_is_malformed(self):
        """A string or bool under a known criterion drops the whole record."""
        assert parse_scores({"nose": "8", "taste": 6}, CRITERIA) is None
        assert parse_scores({"nose": True}, CRITERIA) is None

    def test_non_number_under_unknown_key_ignored(self):
        assert parse_scores({"nose": 8, "notes": "oaky"}, CRITERIA) == {"nose": 8.0}


class TestAsBlindNumber:
    """Stored blind numbers are coerced to positive integers."""

    def test_accepts_positive_integers(self):
        assert as_blind_number(3) == 3
        assert as_blind_number(3.0) == 3
        assert as_blind_number(" 4 ") == 4

    def test_rejects_everything_else(self):
        for value in (None, 0, -1, 2.5, math.nan, True, "x", "", [1]):
            assert as_blind_number(value) is None


class TestWineLookup:
    """Resolution of wine references."""

    def test_first_slot_wins_duplicate_blind_number(self):
        lookup = build_wine_lookup([_wine("a", 1), _wine("b", 1)])
        assert lookup.by_blind_number[1].wine_id == "a"
        assert set(lookup.by_id) == {"a", "b"}

    def test_wine_id_resolves_to_its_blind_number(self):
        lookup = build_wine_lookup([_wine("a", 2)])
        assert lookup.resolve("a", 7) == 2

    def test_falls_back_to_blind_number(self):
        lookup = build_wine_lookup([_wine("a", 2)])
        assert lookup.resolve("missing", 7) == 7
        assert lookup.resolve(None, None) is None

    def test_wine_without_blind_number_falls_back(self):
        lookup = build_wine_lookup([_wine("a", None)])
        assert lookup.resolve("a", 3) == 3


class TestNormalizeRating:
    """Whole-record normalization."""

    def test_entity_record(self):
        lookup = build_wine_lookup([_wine("w1", 1)])
        rating = RatingEntity(
            rating_id="p1_w1",
            tasting_id="t1",
            participant_id="p1",
            wine_id="w1",
            blind_number=None,
            scores={"nose": 8},
        )

        assert normalize_rating(rating, lookup, CRITERIA) == ScoredRating(1, {"nose": 8.0})

    def test_camel_case_mapping(self):
        lookup = build_wine_lookup([])
        raw = {"blindNumber": "2", "participantId": "p9", "scores": {"taste": 5}}

        rating = normalize_rating(raw, lookup, CRITERIA)

        assert rating == ScoredRating(blind_number=2, scores={"taste": 5.0})

    def test_malformed_scores_dropped(self):
        lookup = build_wine_lookup([_wine("w1", 1)])
        raw = {"wineId": "w1", "scores": {"nose": "great"}}

        assert normalize_rating(raw, lookup, CRITERIA) is None

    def test_normalize_ratings_skips_dropped(self):
        lookup = build_wine_lookup([_wine("w1", 1)])
        criteria = [
            CriterionEntity(criterion_id=c, tasting_id="t1", label=c, order=i)
            for i, c in enumerate(CRITERIA)
        ]
        raws = [
            {"wineId": "w1", "scores": {"nose": 8}},
            {"scores": {"nose": 8}},
            {"wineId": "w1", "scores": "broken"},
        ]

        result = normalize_ratings(raws, lookup, criteria)

        assert len(result) == 1
        assert result[0].blind_number == 1
