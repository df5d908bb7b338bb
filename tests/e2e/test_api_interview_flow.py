import pytest
from fastapi.testclient import TestClient

from api.routes import fetch_interview_report
from api_server import create_app
from llm_gateway import DisabledProvider
from services.errors import NotFoundError


ANSWER = "Closures capture the lexical scope so inner functions keep access to variables."


@pytest.fixture()
def client():
    app = create_app()
    app.state.ai_provider = DisabledProvider()
    with TestClient(app) as test_client:
        yield test_client


def _start(client, email="api@example.com"):
    resp = client.post(
        "/api/interviews",
        json={
            "candidate": {"name": "Api Tester", "email": email},
            "resume": {"url": "/uploads/api.pdf", "originalName": "api.pdf"},
            "resumeText": "React and Node.js developer with 4 years of experience.",
        },
    )
    assert resp.status_code == 201
    return resp.json()


def test_health_reports_ai_state(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["ai_enabled"] is False
    assert body["score_denominator"] == "all_questions"


def test_full_interview_flow(client):
    detail = _start(client)
    session_id = detail["session"]["id"]
    assert detail["session"]["status"] == "ACTIVE"
    assert len(detail["questions"]) == 6

    body = None
    for question in detail["questions"]:
        resp = client.post(
            f"/api/interviews/{session_id}/answers",
            json={"questionId": question["id"], "answerText": ANSWER, "timeTakenSeconds": 10},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["duplicate"] is False

    assert body["next_question"] is None
    assert body["session"]["session"]["status"] == "COMPLETED"
    assert body["session"]["session"]["final_score"] is not None

    fetched = client.get(f"/api/interviews/{session_id}").json()
    assert fetched["messages"][-1]["sender"] == "SYSTEM"

    again = client.post(f"/api/interviews/{session_id}/finalize")
    assert again.status_code == 200
    assert again.json()["session"] == fetched["session"]

    report = client.get(f"/api/interviews/{session_id}/report.pdf")
    assert report.status_code == 200
    assert report.headers["content-type"] == "application/pdf"
    assert f'filename="{session_id}-api-tester.pdf"' in report.headers["content-disposition"]
    assert report.content.startswith(b"%PDF")


def test_duplicate_answer_returns_stored_result(client):
    detail = _start(client)
    session_id = detail["session"]["id"]
    payload = {"questionId": detail["questions"][0]["id"], "answerText": ANSWER, "timeTakenSeconds": 3}

    first = client.post(f"/api/interviews/{session_id}/answers", json=payload).json()
    second = client.post(f"/api/interviews/{session_id}/answers", json=payload).json()

    assert second["duplicate"] is True
    assert second["answer"]["id"] == first["answer"]["id"]
    assert second["session"]["session"]["current_question_index"] == 1


def test_out_of_order_answer_is_rejected(client):
    detail = _start(client)
    session_id = detail["session"]["id"]
    resp = client.post(
        f"/api/interviews/{session_id}/answers",
        json={"questionId": detail["questions"][3]["id"], "answerText": ANSWER, "timeTakenSeconds": 3},
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Question order mismatch.", "details": {"expected": 0, "received": 3}}


def test_error_shapes(client):
    missing_email = client.post("/api/interviews", json={"candidate": {"name": "No Email"}})
    assert missing_email.status_code == 400
    assert missing_email.json()["message"] == "Candidate email is required to start an interview."

    bad_payload = client.post("/api/interviews/abc/answers", json={"questionId": "q", "timeTakenSeconds": -1})
    assert bad_payload.status_code == 400
    assert bad_payload.json()["message"] == "Invalid request payload."
    assert bad_payload.json()["details"]

    unknown = client.get("/api/interviews/does-not-exist")
    assert unknown.status_code == 404
    assert unknown.json() == {"message": "Interview session not found.", "details": None}

    report = client.get("/api/interviews/does-not-exist/report.pdf")
    assert report.status_code == 404
    assert report.json() == {"message": "Interview session not found.", "details": None}

    route = client.get("/api/nowhere")
    assert route.status_code == 404
    assert route.json()["message"] == "Route /api/nowhere not found."


def test_resume_insights_endpoint(client):
    text = "Jane Doe\njane@example.com\nReact developer with 6 years of experience using Docker."
    resp = client.post(
        "/api/resumes/insights",
        json={"resumeText": text, "fileName": "jane.pdf", "mimetype": "application/pdf"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["candidate"]["email"] == "jane@example.com"
    assert body["candidate"]["name"] == "Jane Doe"
    assert "React" in body["insights"]["skills"]
    assert body["insights"]["experience_years"] == 6
    assert body["resume"] == {"url": "/uploads/jane.pdf", "originalName": "jane.pdf"}

    unsupported = client.post("/api/resumes/insights", json={"resumeText": text, "mimetype": "image/png"})
    assert unsupported.status_code == 400


def test_candidate_listing_and_detail(client):
    detail = _start(client, email="list@example.com")
    listing = client.get("/api/candidates", params={"search": "LIST@", "sortField": "finalScore"})
    assert listing.status_code == 200
    items = listing.json()
    assert [item["candidate"]["email"] for item in items] == ["list@example.com"]
    assert items[0]["interview_count"] == 1

    candidate_id = detail["candidate"]["id"]
    fetched = client.get(f"/api/candidates/{candidate_id}")
    assert fetched.status_code == 200
    assert fetched.json()["interviews"][0]["session"]["id"] == detail["session"]["id"]
    assert client.get("/api/candidates/missing").status_code == 404


def test_report_route_uses_domain_not_found():
    with pytest.raises(NotFoundError) as exc:
        fetch_interview_report("does-not-exist")
    assert exc.value.status_code == 404
