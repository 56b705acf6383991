import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interview_practice.api.routes import practice as practice_routes
from interview_practice.core.config import settings
from interview_practice.db.base import Base
from interview_practice.db.session import get_db
from interview_practice.main import app
from interview_practice.practice.gateway import SqlPracticeSessionGateway
from interview_practice.practice.registry import ActiveSessionRegistry

SETUP = {"user_id": "user-1", "job_title": "Backend Engineer", "industry": "Fintech", "difficulty": "medium"}


@pytest.fixture
def db_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def registry():
    return ActiveSessionRegistry()


@pytest.fixture
def client(monkeypatch, db_factory, registry):
    monkeypatch.setattr(settings, "tick_interval_seconds", 3600.0)

    def _get_db():
        db = db_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[practice_routes.get_registry] = lambda: registry
    app.dependency_overrides[practice_routes.get_question_source] = lambda: None
    app.dependency_overrides[practice_routes.get_gateway] = lambda: SqlPracticeSessionGateway(db_factory)
    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client
        for session_id, (_, controller) in list(registry._sessions.items()):
            if controller.session.is_active:
                test_client.delete(f"/api/practice/sessions/{session_id}")
    app.dependency_overrides.clear()


def test_full_practice_flow(client):
    created = client.post("/api/practice/sessions", json=SETUP)
    assert created.status_code == 200
    body = created.json()
    session_id = body["session_id"]
    assert body["status"] == "configuring"
    assert body["deck_source"] == "fallback"
    assert len(body["questions"]) == 5
    assert body["notices"] == ["Failed to generate questions. Using sample questions."]

    started = client.post(f"/api/practice/sessions/{session_id}/start").json()
    assert started["status"] == "in_progress"
    assert started["timer"]["clock"] == "2:00"
    assert started["recording"]["is_capturing"] is False

    answered = client.put(
        f"/api/practice/sessions/{session_id}/answer",
        json={"text": "I focus on reliability and clear communication."},
    ).json()
    assert answered["completion_ratio"] == pytest.approx(0.2)

    assert client.post(f"/api/practice/sessions/{session_id}/pause").json()["status"] == "paused"
    assert client.post(f"/api/practice/sessions/{session_id}/resume").json()["status"] == "in_progress"

    pending = client.get(f"/api/practice/sessions/{session_id}/scorecard")
    assert pending.status_code == 409

    for _ in range(5):
        state = client.post(f"/api/practice/sessions/{session_id}/advance").json()
    assert state["status"] == "completed"
    assert len(state["scorecard"]["per_question"]) == 5

    scorecard = client.get(f"/api/practice/sessions/{session_id}/scorecard").json()
    assert scorecard["performance_label"] == "Needs Improvement"

    history = client.get("/api/practice/history", params={"user_id": "user-1"}).json()
    assert [item["session_id"] for item in history] == [session_id]
    assert history[0]["answers"][0] == "I focus on reliability and clear communication."


def test_second_session_while_in_progress_is_rejected(client):
    first = client.post("/api/practice/sessions", json=SETUP).json()
    client.post(f"/api/practice/sessions/{first['session_id']}/start")

    second = client.post("/api/practice/sessions", json=SETUP)
    assert second.status_code == 409

    exited = client.delete(f"/api/practice/sessions/{first['session_id']}")
    assert exited.json()["status"] == "discarded"
    assert client.get(f"/api/practice/sessions/{first['session_id']}").status_code == 404
    assert client.post("/api/practice/sessions", json=SETUP).status_code == 200


def test_blank_config_field_is_rejected(client):
    response = client.post("/api/practice/sessions", json={**SETUP, "industry": "   "})
    assert response.status_code == 400
    assert "industry" in response.json()["detail"]


def test_invalid_navigation_and_transitions(client):
    session_id = client.post("/api/practice/sessions", json=SETUP).json()["session_id"]

    assert client.post(f"/api/practice/sessions/{session_id}/resume").status_code == 409
    client.post(f"/api/practice/sessions/{session_id}/start")
    assert client.post(f"/api/practice/sessions/{session_id}/jump", json={"index": 9}).status_code == 400

    jumped = client.post(f"/api/practice/sessions/{session_id}/jump", json={"index": 2}).json()
    assert jumped["current_question"]["category"] == "Behavioral"
    assert jumped["timer"]["remaining"] == 180

    toggled = client.post(f"/api/practice/sessions/{session_id}/audio").json()
    assert toggled == {"session_id": session_id, "enabled": True}

    assert client.get("/api/practice/sessions/unknown").status_code == 404


@pytest.mark.parametrize("blank", ["", "   "])
def test_empty_and_whitespace_fields_share_the_validation_error(client, blank):
    response = client.post("/api/practice/sessions", json={**SETUP, "job_title": blank, "difficulty": blank})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: job_title, difficulty"


def test_answers_are_listed_in_deck_order(client):
    session_id = client.post("/api/practice/sessions", json=SETUP).json()["session_id"]
    client.post(f"/api/practice/sessions/{session_id}/start")

    client.post(f"/api/practice/sessions/{session_id}/jump", json={"index": 3})
    client.put(f"/api/practice/sessions/{session_id}/answer", json={"text": "fourth"})
    client.post(f"/api/practice/sessions/{session_id}/jump", json={"index": 0})
    state = client.put(f"/api/practice/sessions/{session_id}/answer", json={"text": "first"}).json()

    assert [item["text"] for item in state["answers"]] == ["first", "fourth"]
    assert [item["question_id"] for item in state["answers"]] == ["question_0", "question_3"]


def test_expired_session_is_exited_on_lookup(client, registry):
    session_id = client.post("/api/practice/sessions", json=SETUP).json()["session_id"]
    client.post(f"/api/practice/sessions/{session_id}/start")
    controller = registry.get(session_id)
    registry._sessions[session_id] = (time.time() - 1, controller)  # test-only direct mutation

    assert client.get(f"/api/practice/sessions/{session_id}").status_code == 404
    assert controller.status.value == "discarded"
    assert not controller.schedule.active
    assert len(registry) == 0
    assert client.post("/api/practice/sessions", json=SETUP).status_code == 200
