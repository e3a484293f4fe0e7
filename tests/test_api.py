import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLMClient, generated_payload
from mockprep.infrastructure.cache.source_material_cache import SourceMaterialCache
from mockprep.infrastructure.db.models import MockTest
from mockprep.main import create_app

ADMIN = {"X-User-Id": "1", "X-User-Role": "ADMIN"}
STUDENT = {"X-User-Id": "42"}


@pytest.fixture
def llm_client():
    analysis = json.dumps(
        {
            "summary": "Accuracy is good; revise Indian polity.",
            "strengths": ["Arithmetic"],
            "weaknesses": ["Polity"],
            "action_plan": "- Revise Part III of the Constitution",
        }
    )
    return FakeLLMClient(generated_payload(2), analysis)


@pytest.fixture
def client(session_factory, llm_client):
    cache = SourceMaterialCache(lambda category: f"- headlines for {category}", ttl_seconds=60)
    app = create_app(session_factory=session_factory, llm_client=llm_client, source_material_cache=cache)
    with TestClient(app) as test_client:
        yield test_client


def _seed_course(client):
    course = client.post("/admin/courses", json={"name": "SSC CHSL"}, headers=ADMIN).json()
    polity = client.post("/admin/subjects", json={"name": "Polity"}, headers=ADMIN).json()
    news = client.post("/admin/subjects", json={"name": "Current Affairs"}, headers=ADMIN).json()
    topic = client.post("/admin/topics", json={"name": "Constitution", "subject_id": polity["id"]}, headers=ADMIN).json()
    for i in range(2):
        r = client.post(
            "/admin/questions",
            json={
                "topic_id": topic["id"],
                "question_text": f"Article {i}?",
                "options": ["right", "wrong"],
                "correct_index": 0,
            },
            headers=ADMIN,
        )
        assert r.status_code == 201

    r = client.put(
        f"/admin/courses/{course['id']}/subjects",
        json={"subject_id": polity["id"], "question_count": 2, "marks_per_question": 2, "negative_marks": 0.5},
        headers=ADMIN,
    )
    assert r.status_code == 200
    r = client.put(
        f"/admin/courses/{course['id']}/subjects",
        json={"subject_id": news["id"], "question_count": 2, "order_index": 1},
        headers=ADMIN,
    )
    assert r.json()["sourcing_mode"] == "GENERATIVE"
    return course


def test_root(client):
    assert client.get("/").status_code == 200


def test_identity_headers_are_required(client):
    assert client.get("/mock-tests/courses/1").status_code == 401
    assert client.post("/admin/courses", json={"name": "SSC CHSL"}, headers=STUDENT).status_code == 403


def test_full_exam_flow(client):
    course = _seed_course(client)

    r = client.get(f"/admin/courses/{course['id']}", headers=ADMIN)
    assert [s["subject_name"] for s in r.json()["subjects"]] == ["Polity", "Current Affairs"]

    r = client.post(f"/admin/courses/{course['id']}/mock-tests", json={}, headers=ADMIN)
    assert r.status_code == 201, r.text
    generated = r.json()
    assert generated["is_live"] is True
    assert generated["total_questions"] == 4
    assert generated["total_marks"] == 6.0
    assert generated["title"] == "SSC CHSL - AI Generated Mock"

    news_id = client.get(f"/admin/courses/{course['id']}", headers=ADMIN).json()["subjects"][1]["subject_id"]
    stored = client.get(f"/admin/subjects/{news_id}/questions", headers=ADMIN).json()
    assert [q["options"] for q in stored] == [["Alpha", "Bravo", "Charlie", "Delta"]] * 2
    assert client.get("/admin/subjects/999/questions", headers=ADMIN).status_code == 404

    listing = client.get(f"/mock-tests/courses/{course['id']}", headers=STUDENT).json()
    assert [t["id"] for t in listing] == [generated["id"]]

    paper = client.get(f"/mock-tests/{generated['id']}", headers=STUDENT).json()
    assert len(paper["questions"]) == 4
    assert all("correct_index" not in q for q in paper["questions"])
    first, second = paper["questions"][0], paper["questions"][1]

    r = client.post(
        f"/mock-tests/{generated['id']}/attempts",
        json={
            "answers": [
                {"question_id": first["question_id"], "selected_option": 0, "time_taken": 20},
                {"question_id": second["question_id"], "selected_option": 1, "time_taken": 25},
            ],
            "warning_count": 1,
        },
        headers=STUDENT,
    )
    assert r.status_code == 201, r.text
    attempt = r.json()
    assert attempt["score"] == 1.5
    assert attempt["skipped_count"] == 2
    assert attempt["time_taken"] == 45
    assert attempt["warning_count"] == 1
    assert attempt["ai_feedback"] == "Accuracy is good; revise Indian polity."

    history = client.get("/mock-tests/attempts/me", headers=STUDENT).json()
    assert [h["id"] for h in history] == [attempt["id"]]
    assert history[0]["course_name"] == "SSC CHSL"
    assert history[0]["total_marks"] == 6.0


def test_generation_errors_map_to_status_codes(client):
    assert client.post("/admin/courses/999/mock-tests", json={}, headers=ADMIN).status_code == 404

    course = client.post("/admin/courses", json={"name": "Empty Course"}, headers=ADMIN).json()
    r = client.post(f"/admin/courses/{course['id']}/mock-tests", json={}, headers=ADMIN)
    assert r.status_code == 400
    assert "no subjects" in r.json()["detail"]


def test_generation_sourcing_failure_is_bad_gateway(client, llm_client):
    course = _seed_course(client)
    llm_client.responses = [RuntimeError("model crashed")]

    r = client.post(f"/admin/courses/{course['id']}/mock-tests", json={}, headers=ADMIN)

    assert r.status_code == 502
    assert client.get(f"/mock-tests/courses/{course['id']}", headers=STUDENT).json() == []


def test_unknown_mock_test(client):
    assert client.get("/mock-tests/77", headers=STUDENT).status_code == 404
    r = client.post("/mock-tests/77/attempts", json={"answers": []}, headers=STUDENT)
    assert r.status_code == 404


def test_orphan_sweep_endpoint(client, session_factory):
    course = client.post("/admin/courses", json={"name": "RRB NTPC"}, headers=ADMIN).json()
    with session_factory() as db:
        db.add_all([
            MockTest(course_id=course["id"], title="Stale draft", is_live=False, created_at=datetime(2020, 1, 1)),
            MockTest(course_id=course["id"], title="Fresh draft", is_live=False),
        ])
        db.commit()

    r = client.delete("/admin/mock-tests/drafts", headers=ADMIN)

    assert r.status_code == 200
    assert r.json() == {"deleted": 1}
    with session_factory() as db:
        assert [t.title for t in db.query(MockTest).all()] == ["Fresh draft"]
