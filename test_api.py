"""
HTTP surface exercised through FastAPI's TestClient
"""

import pytest
from fastapi.testclient import TestClient

from careercoach.main import app
from careercoach.services.coach_service import get_coach

from conftest import GEMINI_KEY, FakeInvoker, build_coach, insights_json, make_question, quiz_json


HEADERS = {"X-User-Id": "user-1", "X-User-Name": "Ada"}
PROFILE = {"industry": "tech-software", "experience": 3, "bio": "Backend developer", "skills": "Python, Go"}


class Harness:
    def __init__(self, store, cipher, *responses):
        self.store = store
        self.invoker = FakeInvoker(*responses)
        self.coach = build_coach(store, self.invoker, cipher)
        self.client = TestClient(app)


@pytest.fixture
def harness_factory(store, cipher):
    def factory(*responses):
        harness = Harness(store, cipher, *responses)
        app.dependency_overrides[get_coach] = lambda: harness.coach
        return harness

    yield factory
    app.dependency_overrides.clear()


def test_health_reports_provider(harness_factory):
    client = harness_factory().client
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert "provider" in body["llm"]


def test_missing_identity_is_unauthorized(harness_factory):
    client = harness_factory().client
    res = client.get("/api/insights")
    assert res.status_code == 401
    assert res.json() == {"detail": "Unauthorized"}


def test_onboarding_then_insights(harness_factory):
    harness = harness_factory(insights_json())
    client = harness.client

    assert client.get("/api/onboarding", headers=HEADERS).json() == {"isOnboarded": False}

    res = client.put("/api/profile", json=PROFILE, headers=HEADERS)
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["skills"] == ["Python", "Go"]
    assert body["user"]["name"] == "Ada"
    assert "apiKeyCiphertext" not in body["user"]
    assert body["industryInsight"]["growthRate"] == 12.5

    res = client.get("/api/insights", headers=HEADERS)
    assert res.status_code == 200
    assert res.json()["demandLevel"] == "High"
    assert client.get("/api/onboarding", headers=HEADERS).json() == {"isOnboarded": True}
    assert len(harness.invoker.calls) == 1


def test_invalid_profile_is_rejected(harness_factory):
    client = harness_factory(insights_json()).client
    res = client.put("/api/profile", json={**PROFILE, "experience": 60}, headers=HEADERS)
    assert res.status_code == 422
    assert "between 0 and 50" in res.json()["detail"]


def test_quiz_without_api_key_asks_for_one(harness_factory):
    client = harness_factory(insights_json()).client
    client.put("/api/profile", json=PROFILE, headers=HEADERS)

    res = client.post("/api/interview/quiz", headers=HEADERS)
    assert res.status_code == 400
    assert res.json()["detail"] == "Please add your Gemini API Key in the settings page first."


def test_api_key_settings(harness_factory):
    client = harness_factory().client

    assert client.get("/api/api-key", headers=HEADERS).json() == {"hasApiKey": False}
    res = client.put("/api/api-key", json={"apiKey": "not-a-key"}, headers=HEADERS)
    assert res.status_code == 422

    res = client.put("/api/api-key", json={"apiKey": GEMINI_KEY}, headers=HEADERS)
    assert res.status_code == 200
    assert res.json() == {"hasApiKey": True}
    assert client.get("/api/api-key", headers=HEADERS).json() == {"hasApiKey": True}


def test_quiz_round_trip(harness_factory):
    harness = harness_factory(
        insights_json(),
        quiz_json(make_question(1, "easy"), make_question(2, "hard")),
        "Brush up on distributed systems.",
    )
    client = harness.client
    client.put("/api/profile", json=PROFILE, headers=HEADERS)
    client.put("/api/api-key", json={"apiKey": GEMINI_KEY}, headers=HEADERS)

    res = client.post("/api/interview/quiz", headers=HEADERS)
    assert res.status_code == 200
    questions = res.json()
    assert [q["timeEstimate"] for q in questions] == [30, 90]

    res = client.post(
        "/api/interview/results",
        json={"questions": questions, "answers": ["A", "C"], "timeSpent": 75},
        headers=HEADERS,
    )
    assert res.status_code == 200
    result = res.json()
    assert result["quizScore"] == 50.0
    assert result["improvementTip"] == "Brush up on distributed systems."
    assert result["difficultyBreakdown"]["hard"]["score"] == 0.0

    stats = client.get("/api/interview/stats", headers=HEADERS).json()
    assert stats["totalQuizzes"] == 1
    assert stats["averageScore"] == 50.0
    assert len(client.get("/api/interview/assessments", headers=HEADERS).json()) == 1


def test_cover_letters_endpoints(harness_factory):
    harness = harness_factory(insights_json(), "Dear Hiring Manager, ...")
    client = harness.client
    client.put("/api/profile", json=PROFILE, headers=HEADERS)
    client.put("/api/api-key", json={"apiKey": GEMINI_KEY}, headers=HEADERS)

    res = client.post(
        "/api/cover-letters",
        json={"jobTitle": "Backend Engineer", "companyName": "Acme", "jobDescription": "Build APIs"},
        headers=HEADERS,
    )
    assert res.status_code == 200
    letter_id = res.json()["id"]

    other = {"X-User-Id": "user-2"}
    assert client.get(f"/api/cover-letters/{letter_id}", headers=other).status_code == 404
    assert client.get(f"/api/cover-letters/{letter_id}", headers=HEADERS).json()["companyName"] == "Acme"
    assert client.delete(f"/api/cover-letters/{letter_id}", headers=HEADERS).json() == {"ok": True}
    assert client.get("/api/cover-letters", headers=HEADERS).json() == []


def test_public_improve_needs_no_identity(harness_factory):
    harness = harness_factory("Led a team that shipped weekly releases.")
    client = harness.client

    res = client.post("/api/public/improve", json={"content": "I led a team that shipped stuff."})
    assert res.status_code == 200
    assert res.json() == {"content": "Led a team that shipped weekly releases."}

    res = client.post("/api/public/improve", json={"content": "short"})
    assert res.status_code == 422
    assert res.json()["detail"] == "Please enter at least 20 characters to improve."


def test_public_demo_quiz(harness_factory):
    client = harness_factory(quiz_json(make_question(1))).client
    res = client.post("/api/public/demo-quiz", json={"industry": "healthcare", "skills": ["HIPAA"]})
    assert res.status_code == 200
    assert res.json()[0]["correctAnswer"] == "A"


def test_public_demo_quiz_by_difficulty(harness_factory):
    harness = harness_factory(quiz_json(make_question(1, difficulty="hard")))
    res = harness.client.post(
        "/api/public/demo-quiz/difficulty",
        json={"industry": "healthcare", "difficulty": "hard", "count": 5},
    )
    assert res.status_code == 200
    assert res.json()[0]["difficulty"] == "hard"
    assert "Generate 5 hard difficulty" in harness.invoker.calls[0][1]

    res = harness.client.post("/api/public/demo-quiz/difficulty", json={"industry": "healthcare", "difficulty": "extreme"})
    assert res.status_code == 422
