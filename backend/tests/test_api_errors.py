"""
API error handling integration tests against the assembled application.
"""
import os

os.environ.setdefault("DISABLE_DOTENV", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app import main as main_module
from backend.app.database import Base, get_db
from backend.app.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="module")
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def setup_database():
    from backend.app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


class TestErrorShape:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "Backend running"

    def test_missing_credential_is_401(self, client):
        r = client.get("/resumes")
        assert r.status_code == 401
        data = r.json()
        assert data["success"] is False
        assert data["status_code"] == 401
        assert data["error"]

    def test_malformed_body_is_400(self, client):
        r = client.post("/auth/login", content=b"{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json()["success"] is False

    def test_invalid_email_message(self, client):
        r = client.post("/auth/signup", json={"name": "A", "email": "invalid-email", "password": "password123"})
        assert r.status_code == 400
        assert "email" in r.json()["error"].lower()

    def test_unknown_route_is_404(self, client):
        r = client.get("/nope")
        assert r.status_code == 404
        assert r.json()["success"] is False

    def test_db_health_reports_outage(self, client, monkeypatch):
        def _down():
            raise RuntimeError("connection refused")

        monkeypatch.setattr(main_module, "ping_db", _down)
        r = client.get("/db/health")
        assert r.status_code == 503
        assert r.json()["success"] is False


def test_default_messages_come_from_the_message_table():
    from backend.app.utils.error_handlers import (
        ERROR_MESSAGES,
        AuthError,
        ForbiddenError,
        InvalidStatusError,
        NotFoundError,
    )
    from backend.app.utils.validation import validate_resume_status

    assert AuthError().message == ERROR_MESSAGES["unauthorized"]
    assert ForbiddenError().message == ERROR_MESSAGES["forbidden"]
    assert NotFoundError().message == ERROR_MESSAGES["not_found"]

    with pytest.raises(InvalidStatusError) as exc_info:
        validate_resume_status("hired")
    assert exc_info.value.message.startswith(ERROR_MESSAGES["invalid_status"])
