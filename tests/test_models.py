"""Tests for API request/response models."""

import pytest
from pydantic import ValidationError

from blindtaste.models.types import (
    CreateTastingRequest,
    CriterionInput,
    DraftRequest,
    UpdateTastingMetaRequest,
    WinePatchRequest,
)


def _create_body(**overrides):
    body = {
        "publicSlug": "flight",
        "title": "Flight",
        "hostName": "Sam",
        "pin": "1234",
        "criteria": [{"label": "Nose"}],
    }
    body.update(overrides)
    return body


class TestCreateTastingRequest:
    """Tasting creation payload."""

    def test_defaults(self):
        request = CreateTastingRequest.model_validate(_create_body())

        assert request.public_slug == "flight"
        assert request.wine_count == 10
        assert request.max_participants == 10
        assert request.status == "open"
        assert request.criteria[0].scale_min == 1
        assert request.criteria[0].scale_max == 10
        assert request.criteria[0].weight == 1.0

    def test_accepts_snake_case(self):
        body = _create_body()
        body["public_slug"] = body.pop("publicSlug")
        assert CreateTastingRequest.model_validate(body).public_slug == "flight"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"wineCount": 0},
            {"wineCount": 11},
            {"maxParticipants": 11},
            {"criteria": []},
            {"criteria": [{"label": f"c{i}"} for i in range(9)]},
            {"status": "archived"},
            {"title": ""},
        ],
    )
    def test_rejects_out_of_range(self, overrides):
        with pytest.raises(ValidationError):
            CreateTastingRequest.model_validate(_create_body(**overrides))


class TestCriterionInput:
    """Criterion scale checks."""

    def test_inverted_scale_rejected(self):
        with pytest.raises(ValidationError):
            CriterionInput.model_validate({"label": "Nose", "scaleMin": 10, "scaleMax": 1})

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            CriterionInput.model_validate({"label": "Nose", "weight": -1})

    @pytest.mark.parametrize("field", ["scaleMin", "scaleMax"])
    def test_unbounded_scale_rejected(self, field):
        with pytest.raises(ValidationError):
            CriterionInput.model_validate({"label": "Nose", field: 1e30})


class TestMetaRequest:
    """Tasting metadata edits."""

    def test_date_format(self):
        body = {"title": "T", "hostName": "H", "maxParticipants": 20}
        assert UpdateTastingMetaRequest.model_validate({**body, "tastingDate": "2024-05-01"})
        assert UpdateTastingMetaRequest.model_validate({**body, "tastingDate": ""})
        with pytest.raises(ValidationError):
            UpdateTastingMetaRequest.model_validate({**body, "tastingDate": "01/05/2024"})

    def test_participant_cap_up_to_50(self):
        body = {"title": "T", "hostName": "H"}
        assert UpdateTastingMetaRequest.model_validate({**body, "maxParticipants": 50})
        with pytest.raises(ValidationError):
            UpdateTastingMetaRequest.model_validate({**body, "maxParticipants": 51})


class TestWinePatch:
    """Only fields present in the body count as set."""

    def test_unset_fields_excluded(self):
        patch = WinePatchRequest.model_validate({"winery": "X", "imageUrl": None})
        assert patch.model_dump(exclude_unset=True) == {"winery": "X", "image_url": None}


class TestDraftRequest:
    def test_blind_number_positive(self):
        with pytest.raises(ValidationError):
            DraftRequest.model_validate({"slug": "flight", "blindNumber": 0})
