import asyncio

import pytest
from fastapi.testclient import TestClient

from flashreview.application.config import AppConfig
from flashreview.application.factory import build_engine
from flashreview.consts import VERSION
from flashreview.server import create_app

ALICE = {"X-User-Id": "alice"}


async def _seed(config):
    engine = await build_engine(config)
    try:
        await engine.flashcards.add_many(
            [
                {"question": "2 + 2?", "answer": "4", "difficulty": "easy"},
                {"question": "Capital of Peru?", "answer": "Lima"},
            ]
        )
    finally:
        await engine.close()


@pytest.fixture
def client(mock_home, tmp_path):
    config = AppConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'reviews.db'}")
    asyncio.run(_seed(config))
    with TestClient(create_app(config)) as test_client:
        yield test_client


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.json() == {"version": VERSION}


def test_full_session(client):
    response = client.post("/reviews/sessions", json={"mode": "quiz"}, headers=ALICE)
    assert response.status_code == 200
    started = response.json()
    assert started["status"] == "started"
    assert started["mode"] == "quiz"
    assert started["totalCards"] == 2
    assert started["progress"] == {"current": 1, "total": 2, "percent": 50}

    session_id = started["sessionId"]
    first_id = started["currentCard"]["id"]

    response = client.post(
        f"/reviews/sessions/{session_id}/answers",
        json={"flashcardId": first_id, "isCorrect": True},
        headers=ALICE,
    )
    assert response.status_code == 200
    answer = response.json()
    assert answer["result"] == "advanced"
    assert answer["event"] == "mastered"
    assert answer["intervalDays"] == 1
    assert answer["sessionComplete"] is None

    response = client.post(
        f"/reviews/sessions/{session_id}/answers",
        json={"flashcardId": answer["nextCard"]["id"], "isCorrect": False},
        headers=ALICE,
    )
    done = response.json()
    assert done["result"] == "completed"
    assert done["event"] == "struggled"
    assert done["sessionComplete"] == {
        "totalReviewed": 2,
        "correctCount": 1,
        "accuracyPercent": 50,
    }

    response = client.post("/reviews/sessions", json={}, headers=ALICE)
    assert response.status_code == 200
    assert response.json()["status"] == "no_due_cards"


def test_missing_user_header(client):
    response = client.post("/reviews/sessions", json={})
    assert response.status_code == 422


def test_unknown_mode(client):
    response = client.post("/reviews/sessions", json={"mode": "speedrun"}, headers=ALICE)
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_unknown_session(client):
    response = client.post(
        "/reviews/sessions/review-alice-nope/answers",
        json={"flashcardId": 1, "isCorrect": True},
        headers=ALICE,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "SESSION_NOT_FOUND"


def test_wrong_card_in_session(client):
    started = client.post("/reviews/sessions", json={}, headers=ALICE).json()
    other = 2 if started["currentCard"]["id"] == 1 else 1

    response = client.post(
        f"/reviews/sessions/{started['sessionId']}/answers",
        json={"flashcardId": other, "isCorrect": True},
        headers=ALICE,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "CARD_NOT_IN_SESSION"


def test_record_and_history(client):
    response = client.post(
        "/reviews/record", json={"flashcardId": 1, "isCorrect": True}, headers=ALICE
    )
    assert response.status_code == 200
    recorded = response.json()
    assert recorded["reviewMode"] == "flashcard"
    assert recorded["event"] == "mastered"

    history = client.get("/reviews/history/1", headers=ALICE).json()
    assert [h["id"] for h in history] == [recorded["id"]]

    due = client.get("/reviews/due", headers=ALICE).json()
    assert due["totalDue"] == 1
    assert [c["id"] for c in due["cards"]] == [2]
    assert due["cards"][0]["daysOverdue"] == 0


def test_record_unknown_card(client):
    response = client.post(
        "/reviews/record", json={"flashcardId": 99, "isCorrect": True}, headers=ALICE
    )
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "FLASHCARD_NOT_FOUND"


def test_struggling_and_stats(client):
    for _ in range(3):
        client.post("/reviews/record", json={"flashcardId": 2, "isCorrect": False}, headers=ALICE)

    struggling = client.get("/reviews/struggling", headers=ALICE).json()
    assert struggling["total"] == 1
    assert struggling["cards"][0]["id"] == 2
    assert struggling["cards"][0]["timesFailed"] == 1

    stats = client.get("/reviews/stats", headers=ALICE).json()
    assert stats["totalReviews"] == 3
    assert stats["strugglingCount"] == 1
    assert stats["accuracyPercent"] == 0
    assert stats["mastery"] == {"learning": 1, "mastered": 0}
