"""Tests for public tasting views, public results and the admin report."""

import pytest


def _rate(client, name, blind_number, scores):
    """Join as ``name`` (replacing the client's session) and submit one rating."""
    joined = client.post("/api/join", json={"slug": "friday-flight", "pin": "1234", "name": name})
    assert joined.status_code == 200, joined.text
    response = client.post("/api/ratings", json={"blindNumber": blind_number, "scores": scores})
    assert response.status_code == 200, response.text


@pytest.fixture
def criteria_ids(client, make_tasting):
    make_tasting()
    criteria = client.get("/api/tastings/friday-flight").json()["criteria"]
    return [c["id"] for c in criteria]


@pytest.fixture
def labelled_wine(client, admin_headers, criteria_ids):
    client.patch(
        "/api/admin/tastings/friday-flight/wines/1",
        json={"winery": "Domaine X", "grape": "Syrah", "vintage": "2019", "ownerName": "Kim"},
        headers=admin_headers,
    )
    return criteria_ids


class TestPublicTasting:
    """GET /api/tastings/{slug} and /wines."""

    def test_public_view(self, client, labelled_wine):
        data = client.get("/api/tastings/friday-flight").json()

        assert data["tasting"] == {
            "title": "Friday Flight",
            "hostName": "Sam",
            "status": "open",
            "wineCount": 3,
        }
        assert data["revealed"] is False
        assert [c["label"] for c in data["criteria"]] == ["Nose", "Taste"]
        assert [w["blindNumber"] for w in data["wines"]] == [1, 2, 3]
        assert data["wines"][0]["winery"] is None
        assert "wineId" not in data["wines"][0]
        assert "pinHash" not in str(data)

    def test_wines_hidden_until_reveal(self, client, admin_headers, labelled_wine):
        response = client.get("/api/tastings/friday-flight/wines")
        assert response.headers["cache-control"] == "no-store, max-age=0"
        assert response.json()["wines"][0]["ownerName"] is None

        client.post("/api/admin/tastings/friday-flight/reveal", headers=admin_headers)

        wine = client.get("/api/tastings/friday-flight/wines").json()["wines"][0]
        assert wine["winery"] == "Domaine X"
        assert wine["grape"] == "Syrah"
        assert wine["vintage"] == "2019"
        assert wine["ownerName"] == "Kim"

    def test_inactive_criteria_hidden(self, client, admin_headers, criteria_ids):
        client.post(
            "/api/admin/tastings/friday-flight/criteria",
            json={"id": criteria_ids[1], "label": "Taste", "order": 2, "isActive": False},
            headers=admin_headers,
        )
        criteria = client.get("/api/tastings/friday-flight").json()["criteria"]
        assert [c["label"] for c in criteria] == ["Nose"]

    def test_unknown_slug_returns_404(self, client):
        response = client.get("/api/tastings/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Tasting not found"}


class TestPublicResults:
    """GET /api/tastings/{slug}/results."""

    def test_empty_results(self, client, criteria_ids):
        data = client.get("/api/tastings/friday-flight/results").json()

        assert data["strategy"] == "rating_mean"
        assert data["ratingCount"] == 0
        assert data["ranking"] == []
        assert [row["blindNumber"] for row in data["rows"]] == [1, 2, 3]
        for row in data["rows"]:
            assert row["nRatings"] == 0
            assert row["overallAvg"] is None
            assert row["rank"] is None

    def test_nose_taste_scenario(self, client, criteria_ids):
        nose, taste = criteria_ids
        _rate(client, "Ana", 1, {nose: 8, taste: 6})
        _rate(client, "Ben", 1, {nose: 10})

        data = client.get("/api/tastings/friday-flight/results").json()

        row = data["rows"][0]
        assert row["perCriteriaAvg"] == {nose: 9.0, taste: 6.0}
        assert row["overallAvg"] == 8.5
        assert row["nRatings"] == 2
        assert row["rank"] == 1
        assert data["ratingCount"] == 2

    def test_ranking_order(self, client, criteria_ids):
        nose, _taste = criteria_ids
        _rate(client, "Ana", 1, {nose: 6})
        _rate(client, "Ben", 3, {nose: 9})

        data = client.get("/api/tastings/friday-flight/results").json()

        assert [row["blindNumber"] for row in data["ranking"]] == [3, 1]
        assert [row["rank"] for row in data["rows"]] == [2, None, 1]

    def test_identity_gated_on_reveal(self, client, admin_headers, labelled_wine):
        nose, _taste = labelled_wine
        _rate(client, "Ana", 1, {nose: 7})

        data = client.get("/api/tastings/friday-flight/results").json()
        assert data["revealed"] is False
        assert data["rows"][0]["wine"]["winery"] is None

        client.post("/api/admin/tastings/friday-flight/reveal", headers=admin_headers)

        data = client.get("/api/tastings/friday-flight/results").json()
        assert data["revealed"] is True
        assert data["rows"][0]["wine"]["winery"] == "Domaine X"
        assert data["ranking"][0]["wine"]["ownerName"] == "Kim"

    def test_inactive_criteria_left_out(self, client, admin_headers, criteria_ids):
        nose, taste = criteria_ids
        _rate(client, "Ana", 1, {nose: 8, taste: 4})
        client.post(
            "/api/admin/tastings/friday-flight/criteria",
            json={"id": taste, "label": "Taste", "order": 2, "isActive": False},
            headers=admin_headers,
        )

        row = client.get("/api/tastings/friday-flight/results").json()["rows"][0]
        assert row["perCriteriaAvg"] == {nose: 8.0}
        assert row["overallAvg"] == 8.0


class TestAdminReport:
    """GET /api/admin/tastings/{slug}/report."""

    def test_requires_admin(self, client, criteria_ids):
        assert client.get("/api/admin/tastings/friday-flight/report").status_code == 401

    def test_weighted_strategy_and_full_identity(self, client, admin_headers, labelled_wine):
        nose, taste = labelled_wine
        _rate(client, "Ana", 1, {nose: 8, taste: 6})
        _rate(client, "Ben", 1, {nose: 10})

        response = client.get("/api/admin/tastings/friday-flight/report", headers=admin_headers)
        data = response.json()

        assert response.headers["cache-control"] == "no-store, max-age=0"
        assert data["strategy"] == "weighted_criterion_mean"
        assert data["rows"][0]["overallAvg"] == 7.5
        assert data["rows"][0]["nRatings"] == 2
        assert data["rows"][0]["wine"]["winery"] == "Domaine X"
        assert data["revealed"] is False

    def test_criterion_weights(self, client, admin_headers, criteria_ids):
        nose, taste = criteria_ids
        client.post(
            "/api/admin/tastings/friday-flight/criteria",
            json={"id": nose, "label": "Nose", "order": 1, "weight": 3},
            headers=admin_headers,
        )
        _rate(client, "Ana", 2, {nose: 8, taste: 4})

        data = client.get(
            "/api/admin/tastings/friday-flight/report", headers=admin_headers
        ).json()
        assert data["rows"][1]["overallAvg"] == 7.0
