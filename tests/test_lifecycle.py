"""Tests for tasting lifecycle and participation services."""

import pytest

from blindtaste.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from blindtaste.core.session import SessionData
from blindtaste.db import repo
from blindtaste.models.domain import TastingEntity
from blindtaste.tasting import lifecycle, participation, ratings

SALT = "salt"


def _new(**overrides):
    fields = dict(
        public_slug="flight",
        title="Flight",
        host_name="Sam",
        pin="1234",
        wine_count=3,
        max_participants=2,
        criteria=[lifecycle.CriterionInput(label="Nose"), lifecycle.CriterionInput(label="Taste")],
    )
    fields.update(overrides)
    return lifecycle.NewTasting(**fields)


class TestCreateTasting:
    """Tasting creation."""

    def test_creates_children(self, session):
        tasting = lifecycle.create_tasting(session, _new(), pin_salt=SALT)

        assert tasting.pin_hash != "1234"
        assert len(repo.get_wines_for_tasting(session, tasting.tasting_id)) == 3
        criteria = repo.get_criteria_for_tasting(session, tasting.tasting_id)
        assert [(c.label, c.order) for c in criteria] == [("Nose", 1), ("Taste", 2)]

    def test_slug_trimmed_and_unique(self, session):
        lifecycle.create_tasting(session, _new(public_slug=" flight "), pin_salt=SALT)
        with pytest.raises(ConflictError):
            lifecycle.create_tasting(session, _new(), pin_salt=SALT)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"pin": "abcd"},
            {"wine_count": 0},
            {"wine_count": 11},
            {"criteria": []},
            {"status": "archived"},
            {"criteria": [lifecycle.CriterionInput(label=" ")]},
            {"criteria": [lifecycle.CriterionInput(label="Nose", scale_min=5, scale_max=1)]},
            {"criteria": [lifecycle.CriterionInput(label="Nose", scale_max=1e30)]},
        ],
    )
    def test_invalid_input(self, session, overrides):
        with pytest.raises(InvalidInputError):
            lifecycle.create_tasting(session, _new(**overrides), pin_salt=SALT)


class TestWineSlots:
    """Placeholder slot creation."""

    def test_creates_missing_slots(self, session):
        tasting = TastingEntity(
            tasting_id="t1",
            public_slug="legacy",
            title="Legacy",
            host_name="Sam",
            status="open",
            wine_count=2,
        )
        repo.create_tasting(session, tasting)
        repo.commit(session)

        wines = lifecycle.ensure_wine_slots(session, tasting)
        assert [w.blind_number for w in wines] == [1, 2]

        again = lifecycle.ensure_wine_slots(session, tasting)
        assert [w.wine_id for w in again] == [w.wine_id for w in wines]


class TestRequireTasting:
    def test_empty_slug(self, session):
        with pytest.raises(InvalidInputError):
            lifecycle.require_tasting(session, "  ")

    def test_unknown_slug(self, session):
        with pytest.raises(NotFoundError):
            lifecycle.require_tasting(session, "nope")


class TestParticipation:
    """Join, capacity and session resolution."""

    def test_capacity(self, session):
        tasting = lifecycle.create_tasting(session, _new(), pin_salt=SALT)
        kwargs = dict(pin="1234", pin_salt=SALT, default_max_participants=10)

        participation.join_tasting(session, tasting, name="A", **kwargs)
        participation.join_tasting(session, tasting, name="B", **kwargs)
        with pytest.raises(ConflictError):
            participation.join_tasting(session, tasting, name="C", **kwargs)

    def test_capacity_rechecked_after_insert(self, session, monkeypatch):
        """A join that raced past a stale count is rolled back."""
        tasting = lifecycle.create_tasting(session, _new(max_participants=1), pin_salt=SALT)
        kwargs = dict(pin="1234", pin_salt=SALT, default_max_participants=10)
        participation.join_tasting(session, tasting, name="A", **kwargs)

        real_count = repo.count_active_participants
        calls = []

        def stale_then_real(db_session, tasting_id):
            calls.append(tasting_id)
            return 0 if len(calls) == 1 else real_count(db_session, tasting_id)

        monkeypatch.setattr(repo, "count_active_participants", stale_then_real)
        with pytest.raises(ConflictError):
            participation.join_tasting(session, tasting, name="B", **kwargs)

        monkeypatch.undo()
        names = [p.name for p in repo.get_participants_for_tasting(session, tasting.tasting_id)]
        assert names == ["A"]

    def test_default_cap_when_unset(self, session):
        tasting = lifecycle.create_tasting(session, _new(), pin_salt=SALT)
        tasting.max_participants = None
        kwargs = dict(pin="1234", pin_salt=SALT, default_max_participants=1)

        participation.join_tasting(session, tasting, name="A", **kwargs)
        with pytest.raises(ConflictError):
            participation.join_tasting(session, tasting, name="B", **kwargs)

    def test_session_must_match_tasting(self, session):
        tasting = lifecycle.create_tasting(session, _new(), pin_salt=SALT)
        participant = participation.join_tasting(
            session, tasting, pin="1234", name="A", pin_salt=SALT, default_max_participants=10
        )

        data = SessionData(tasting_id="elsewhere", participant_id=participant.participant_id)
        with pytest.raises(ForbiddenError):
            participation.resolve_participant(session, tasting, data)

        data = SessionData(tasting_id=tasting.tasting_id, participant_id=participant.participant_id)
        resolved = participation.resolve_participant(session, tasting, data)
        assert resolved.participant_id == participant.participant_id


class TestRatingsService:
    """Score validation."""

    def test_validate_scores(self, session):
        tasting = lifecycle.create_tasting(session, _new(), pin_salt=SALT)
        criteria = repo.get_criteria_for_tasting(session, tasting.tasting_id)
        nose = criteria[0].criterion_id

        assert ratings.validate_scores({nose: 10, criteria[1].criterion_id: None}, criteria) == {
            nose: 10.0,
            criteria[1].criterion_id: None,
        }
        for bad in (0, 10.5, True, "7", float("nan")):
            with pytest.raises(InvalidInputError):
                ratings.validate_scores({nose: bad}, criteria)
