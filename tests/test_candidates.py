"""
Integration tests for candidate endpoints.
"""
import base64

from talentdesk.db.models.candidate import Candidate
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.interview_evaluation import InterviewEvaluation


PDF_BYTES = b"%PDF-1.4\n1 0 obj\n(Alan Turing) (alan@example.com)\nendobj\n%%EOF"
UNREADABLE_PDF = b"%PDF-1.4\n%%EOF"


def _create(client, auth_headers, **overrides):
    form = {"first_name": "Alan", "last_name": "Turing", "email": "alan@example.com", "phone": "555-0123"}
    form.update(overrides)
    return client.post(
        "/candidates",
        data=form,
        files={"resume": ("alan.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )


def test_candidates_require_session(client):
    response = client.get("/candidates")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_create_then_get_candidate(client, auth_headers):
    response = _create(client, auth_headers)

    assert response.status_code == 201
    created = response.json()
    assert created["success"] is True
    candidate_id = created["candidate"]["id"]

    response = client.get(f"/candidates/{candidate_id}", headers=auth_headers)

    assert response.status_code == 200
    candidate = response.json()["candidate"]
    assert candidate["email"] == "alan@example.com"
    assert candidate["resume_file_name"] == "alan.pdf"
    assert base64.b64decode(candidate["resume"]) == PDF_BYTES


def test_create_candidate_missing_fields(client, auth_headers):
    response = client.post(
        "/candidates",
        data={"first_name": "Alan"},
        files={"resume": ("alan.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert "required" in response.json()["error"]


def test_create_candidate_rejects_empty_resume(client, auth_headers):
    response = client.post(
        "/candidates",
        data={"first_name": "Alan", "last_name": "Turing", "email": "alan@example.com"},
        files={"resume": ("alan.pdf", b"", "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Resume file is empty"}


def test_list_candidates_omits_resume(client, auth_headers):
    _create(client, auth_headers)
    _create(client, auth_headers, email="second@example.com")

    data = client.get("/candidates", headers=auth_headers).json()

    assert data["total"] == 2
    assert all("resume" not in c for c in data["candidates"])


def test_get_unknown_candidate(client, auth_headers):
    response = client.get("/candidates/does-not-exist", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Candidate not found"}


def test_update_candidate(client, auth_headers, candidate):
    response = client.put(
        f"/candidates/{candidate.id}",
        json={"first_name": "Grace B.", "last_name": "Hopper", "email": "GBH@example.com", "phone": "555-0000"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["candidate"]
    assert updated["first_name"] == "Grace B."
    assert updated["email"] == "gbh@example.com"


def test_update_candidate_invalid_email(client, auth_headers, candidate):
    response = client.put(
        f"/candidates/{candidate.id}",
        json={"first_name": "Grace", "last_name": "Hopper", "email": "not-an-email"},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_replace_and_download_resume(client, auth_headers, candidate):
    response = client.put(
        f"/candidates/{candidate.id}/resume",
        files={"resume": ("grace.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["candidate"]["resume_file_name"] == "grace.pdf"

    response = client.get(f"/candidates/{candidate.id}/resume", headers=auth_headers)

    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"] == "application/pdf"
    assert "grace.pdf" in response.headers["content-disposition"]


def test_delete_candidate_cascades(client, auth_headers, candidate, db_session):
    db_session.add(Interview(candidate_id=candidate.id, responses=[{"question": "Q", "answer": "A"}]))
    db_session.add(InterviewEvaluation(candidate_id=candidate.id, evaluation={"recommendation": "hire"}))
    db_session.commit()

    response = client.delete(f"/candidates/{candidate.id}", headers=auth_headers)

    assert response.status_code == 204
    db_session.expire_all()
    assert db_session.query(Candidate).count() == 0
    assert db_session.query(Interview).count() == 0
    assert db_session.query(InterviewEvaluation).count() == 0
    assert client.get(f"/candidates/{candidate.id}", headers=auth_headers).status_code == 404


def test_smart_create_reads_pdf_natively(client, auth_headers, fake_llm):
    fake_llm.queue({"first_name": "Alan", "last_name": "Turing", "email": "Alan@Example.com", "phone": ""})

    response = client.post(
        "/candidates/smart-create",
        files={"resume": ("alan.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["candidate"]["email"] == "alan@example.com"
    assert data["extracted_info"]["last_name"] == "Turing"
    assert fake_llm.uploaded == ["alan.pdf"]
    assert fake_llm.deleted == ["file-1"]


def test_smart_create_falls_back_to_text(client, auth_headers, fake_llm):
    fake_llm.fail_upload = True
    fake_llm.queue({"first_name": "Alan", "last_name": "Turing", "email": "alan@example.com"})

    response = client.post(
        "/candidates/smart-create",
        files={"resume": ("alan.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 201
    prompt = fake_llm.calls[0]["messages"][1]["content"]
    assert "alan@example.com" in prompt


def test_smart_create_unreadable_resume(client, auth_headers, fake_llm):
    fake_llm.fail_upload = True

    response = client.post(
        "/candidates/smart-create",
        files={"resume": ("scan.pdf", UNREADABLE_PDF, "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    body = response.json()
    assert "manually" in body["error"]
    assert body["file_name"] == "scan.pdf"
    assert fake_llm.calls == []


def test_smart_create_incomplete_extraction(client, auth_headers, fake_llm):
    fake_llm.queue({"first_name": "Alan", "last_name": "", "email": ""})

    response = client.post(
        "/candidates/smart-create",
        files={"resume": ("alan.txt", b"Alan Turing, Bletchley Park", "text/plain")},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["extracted_info"]["first_name"] == "Alan"


def test_text_create_candidate(client, auth_headers, fake_llm, db_session):
    fake_llm.queue({"first_name": "Alan", "last_name": "Turing", "email": "alan@example.com", "phone": "555"})

    response = client.post(
        "/candidates/text-create",
        json={"resume_text": "Alan Turing\nalan@example.com\nMathematician"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    candidate = db_session.query(Candidate).one()
    assert candidate.resume_file_name.startswith("resume-text-")
    assert base64.b64decode(candidate.resume).startswith(b"Alan Turing")


def test_text_create_rejects_blank_text(client, auth_headers, fake_llm):
    response = client.post("/candidates/text-create", json={"resume_text": "   "}, headers=auth_headers)

    assert response.status_code == 400
    assert fake_llm.calls == []


def test_resume_summary(client, auth_headers, fake_llm, candidate):
    fake_llm.queue("Grace Hopper is a compiler pioneer.")

    response = client.get(f"/candidates/{candidate.id}/resume-summary", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"valid": True, "summary": "Grace Hopper is a compiler pioneer."}
    assert "response_format" not in fake_llm.calls[0]


def test_resume_review(client, auth_headers, fake_llm, candidate):
    fake_llm.queue({"summary": "Strong", "strengths": "Compilers", "weaknesses": [], "recommendation": "Interview"})

    response = client.get(f"/candidates/{candidate.id}/resume-review", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["feedback"]["strengths"] == ["Compilers"]


def test_resume_review_wrong_structure(client, auth_headers, fake_llm, candidate):
    fake_llm.queue({"summary": ["not", "a", "string"], "strengths": [], "weaknesses": [], "recommendation": "Interview"})

    response = client.get(f"/candidates/{candidate.id}/resume-review", headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "AI resume review did not match the expected structure"
    assert '"not"' in body["raw"]


def test_unexpected_error_returns_json(safe_client, auth_headers, fake_llm, candidate, monkeypatch):
    def broken_chat(*args, **kwargs):
        raise RuntimeError("provider crashed")

    monkeypatch.setattr(fake_llm, "chat", broken_chat)

    response = safe_client.get(f"/candidates/{candidate.id}/resume-summary", headers=auth_headers)

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"error": "Internal server error"}


def test_replace_resume_commit_failure(client, auth_headers, candidate, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from sqlalchemy.orm import Session

    def failing_commit(self):
        raise OperationalError("UPDATE candidates", {}, Exception("database is locked"))

    monkeypatch.setattr(Session, "commit", failing_commit)

    response = client.put(
        f"/candidates/{candidate.id}/resume",
        files={"resume": ("grace.pdf", PDF_BYTES, "application/pdf")},
        headers=auth_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to replace resume"}


def test_download_escapes_file_name(client, auth_headers, candidate, db_session):
    candidate.resume_file_name = 'my "cv".txt'
    db_session.commit()

    response = client.get(f"/candidates/{candidate.id}/resume", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"my cv.txt\"; filename*=UTF-8''my%20%22cv%22.txt"
    )
