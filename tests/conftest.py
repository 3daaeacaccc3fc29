"""Shared pytest fixtures for blindtaste tests."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blindtaste.core.config import Settings
from blindtaste.db.schema import Base


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session_ = sessionmaker(bind=engine)
    session = Session_()
    yield session
    session.close()


@pytest.fixture
def settings(tmp_path):
    """Settings with all secrets configured."""
    return Settings(
        admin_secret="test-admin-secret",
        session_secret="test-session-secret",
        pin_salt="test-salt",
        database_path=tmp_path / "blindtaste.db",
    )


@pytest.fixture
def admin_headers(settings):
    return {"x-admin-secret": settings.admin_secret}


@pytest.fixture
def client(engine, settings):
    """TestClient whose requests use the in-memory test database."""
    from blindtaste.api.app import create_app, get_db_session

    app = create_app(settings)

    def override_get_db():
        with Session(engine) as db_session:
            yield db_session

    app.dependency_overrides[get_db_session] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_tasting(client, admin_headers):
    """Factory creating a tasting through the admin API.

    Defaults: 3 wines, criteria Nose and Taste on 1..10, PIN 1234, open.
    """

    def _make(slug="friday-flight", **overrides):
        body = {
            "publicSlug": slug,
            "title": "Friday Flight",
            "hostName": "Sam",
            "pin": "1234",
            "wineCount": 3,
            "maxParticipants": 4,
            "criteria": [{"label": "Nose"}, {"label": "Taste"}],
        }
        body.update(overrides)
        response = client.post("/api/admin/tastings", json=body, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def joined_client(client, make_tasting):
    """Client holding a participant session for an open tasting.

    Returns:
        (client, slug, criterion IDs in display order)
    """
    make_tasting()
    response = client.post("/api/join", json={"slug": "friday-flight", "pin": "1234", "name": "Ana"})
    assert response.status_code == 200, response.text

    criteria = client.get("/api/tastings/friday-flight").json()["criteria"]
    return client, "friday-flight", [c["id"] for c in criteria]
