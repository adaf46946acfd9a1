"""
Integration tests for the interview loop and final evaluation.
"""
import pytest
from fastapi import HTTPException

from talentdesk.core import config
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.interview_evaluation import InterviewEvaluation
from talentdesk.services import interview_service


def _start(client, candidate, job, **extra):
    return client.post(
        "/interviews/start",
        json={"candidate_id": candidate.id, "job_profile_id": job.id, **extra},
    )


def _answer(client, candidate, n, version=None):
    payload = {
        "candidate_id": candidate.id,
        "current_question": f"Question {n}?",
        "current_answer": f"Answer {n}.",
    }
    if version is not None:
        payload["version"] = version
    return client.post("/interviews/evaluate", json=payload)


def test_start_returns_opening_question(client, fake_llm, candidate, job):
    fake_llm.queue({"question": "Tell me about your compiler work.", "type": "opening"})

    response = _start(client, candidate, job)

    assert response.status_code == 200
    data = response.json()
    assert data["initial_question"] == "Tell me about your compiler work."
    assert data["max_questions"] == config.MAX_INTERVIEW_QUESTIONS
    assert len(data["custom_questions"]) == 2
    assert data["job_profile"]["title"] == "Backend Engineer"
    # plain-text resumes are shared with the model as background
    assert "compiler pioneer" in fake_llm.calls[0]["messages"][1]["content"]


def test_start_uses_default_question_on_bad_output(client, fake_llm, candidate, job):
    fake_llm.queue("I'd love to help with that!")

    response = _start(client, candidate, job)

    assert "Backend Engineer" in response.json()["initial_question"]


def test_start_unknown_job(client, fake_llm, candidate):
    response = client.post("/interviews/start", json={"candidate_id": candidate.id, "job_profile_id": "nope"})

    assert response.status_code == 404
    assert response.json() == {"error": "Job not found"}


def test_evaluate_without_interview(client, fake_llm, candidate):
    response = _answer(client, candidate, 1)

    assert response.status_code == 404


def test_first_answer_is_scored(client, fake_llm, candidate, job):
    _start(client, candidate, job)

    response = _answer(client, candidate, 1)

    assert response.status_code == 200
    data = response.json()
    assert data["evaluation"]["score"] == 8
    assert data["should_continue"] is True
    assert data["interview_complete"] is False
    assert data["next_question"] == "How do you approach debugging a production incident?"
    assert data["progress"] == {"current_count": 1, "max_questions": 8, "overall_score": 8.0}
    assert len(data["custom_questions"]) == 2


def test_asked_bank_questions_are_not_offered_again(client, fake_llm, candidate, job):
    _start(client, candidate, job)

    response = client.post("/interviews/evaluate", json={
        "candidate_id": candidate.id,
        "current_question": "what is a database index?",
        "current_answer": "A sorted lookup structure.",
    })

    questions = [q["question"] for q in response.json()["custom_questions"]]
    assert questions == ["Explain HTTP caching."]


def test_running_score_is_mean(client, fake_llm, candidate, job):
    _start(client, candidate, job)
    fake_llm.queue({"score": 10, "feedback": "Great"}, {"question": "Next?"})
    _answer(client, candidate, 1)
    fake_llm.queue({"score": 4, "feedback": "Thin"}, {"question": "Next?"})

    response = _answer(client, candidate, 2)

    assert response.json()["progress"]["overall_score"] == 7.0


def test_malformed_evaluation_scores_neutral(client, fake_llm, candidate, job):
    _start(client, candidate, job)
    fake_llm.queue("not json", {"question": "Next?"})

    evaluation = _answer(client, candidate, 1).json()["evaluation"]

    assert evaluation["score"] == 5
    assert evaluation["feedback"] == "Unable to evaluate"


def test_interview_completes_after_max_questions(client, fake_llm, candidate, job, db_session):
    _start(client, candidate, job)

    for n in range(1, 8):
        data = _answer(client, candidate, n).json()
        assert data["should_continue"] is True

    data = _answer(client, candidate, 8).json()

    assert data["should_continue"] is False
    assert data["interview_complete"] is True
    assert data["next_question"] is None
    assert data["progress"]["current_count"] == 8

    interview = db_session.query(Interview).one()
    assert interview.completed is True
    assert len(interview.responses) == 8


def test_completed_interview_rejects_answers(client, fake_llm, candidate, job):
    _start(client, candidate, job)
    for n in range(1, 9):
        _answer(client, candidate, n)

    response = _answer(client, candidate, 9)

    assert response.status_code == 409
    assert response.json() == {"error": "Interview already completed"}


def test_completed_interview_needs_explicit_restart(client, fake_llm, candidate, job, db_session):
    _start(client, candidate, job)
    for n in range(1, 9):
        _answer(client, candidate, n)

    assert _start(client, candidate, job).status_code == 409

    response = _start(client, candidate, job, restart=True)

    assert response.status_code == 200
    db_session.expire_all()
    interview = db_session.query(Interview).one()
    assert interview.completed is False
    assert interview.responses == []


def test_duplicate_submission_not_counted(client, fake_llm, candidate, job):
    _start(client, candidate, job)
    first = _answer(client, candidate, 1).json()

    second = _answer(client, candidate, 1).json()

    assert second["duplicate"] is True
    assert second["progress"]["current_count"] == 1
    assert second["version"] == first["version"]
    assert second["next_question"] == first["next_question"]


def test_stale_version_conflicts(client, fake_llm, candidate, job):
    version = _start(client, candidate, job).json()["version"]
    response = _answer(client, candidate, 1, version=version)
    assert response.status_code == 200
    assert response.json()["version"] > version

    response = _answer(client, candidate, 2, version=version)

    assert response.status_code == 409


def test_upsert_and_get_transcript(client, candidate):
    responses = [
        {"question": "Q1?", "answer": "A1", "evaluation": {"score": 7}},
        {"question": "Q2?", "answer": "A2"},
    ]

    response = client.post("/interviews", json={"candidate_id": candidate.id, "responses": responses})
    assert response.status_code == 200

    response = client.post("/interviews", json={"candidate_id": candidate.id, "responses": responses[:1]})
    assert response.status_code == 200

    interview = client.get(f"/interviews/{candidate.id}").json()["interview"]
    assert interview["responses"] == responses[:1]


def test_get_unknown_interview(client):
    response = client.get("/interviews/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Interview not found"}


def test_final_evaluation_requires_session(client, candidate):
    response = client.post("/interviews/final-evaluation", json={"candidate_id": candidate.id})

    assert response.status_code == 401


def test_final_evaluation_without_answers(client, auth_headers, fake_llm, candidate, job):
    _start(client, candidate, job)

    response = client.post(
        "/interviews/final-evaluation", json={"candidate_id": candidate.id}, headers=auth_headers
    )

    assert response.status_code == 400


def test_final_evaluation_stored(client, auth_headers, fake_llm, candidate, job, db_session):
    _start(client, candidate, job)
    _answer(client, candidate, 1)
    _answer(client, candidate, 2)
    fake_llm.queue({
        "overall_score": 8,
        "recommendation": "Hire",
        "summary": "Strong systems background.",
        "detailed_feedback": {"strengths": ["Depth"], "weaknesses": []},
        "next_steps": "Onsite",
    })

    response = client.post(
        "/interviews/final-evaluation", json={"candidate_id": candidate.id}, headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["evaluation"]["recommendation"] == "hire"
    assert data["interview_stats"]["total_questions"] == 2
    assert data["interview_stats"]["average_score"] == 8.0

    stored = client.get(
        "/interviews/final-evaluation", params={"candidate_id": candidate.id}, headers=auth_headers
    ).json()
    assert stored["evaluation"]["summary"] == "Strong systems background."
    assert db_session.query(InterviewEvaluation).count() == 1


def test_final_evaluation_falls_back_on_bad_output(client, auth_headers, fake_llm, candidate, job):
    _start(client, candidate, job)
    _answer(client, candidate, 1)
    fake_llm.queue("The candidate did well overall.")

    response = client.post(
        "/interviews/final-evaluation", json={"candidate_id": candidate.id}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["evaluation"]["recommendation"] == "hire"


def test_stored_evaluation_absent(client, auth_headers, candidate):
    response = client.get(
        "/interviews/final-evaluation", params={"candidate_id": candidate.id}, headers=auth_headers
    )

    assert response.json() == {"evaluation": None}


def test_concurrent_writer_conflicts(fake_llm, candidate, job, db_session, session_factory):
    db_session.add(Interview(candidate_id=candidate.id, job_id=job.id, responses=[]))
    db_session.commit()

    first, second = session_factory(), session_factory()
    first_view = first.query(Interview).one()
    second_view = second.query(Interview).one()

    interview_service.submit_answer(first, fake_llm, first_view, job, "Question 1?", "Answer 1.")

    with pytest.raises(HTTPException) as exc_info:
        interview_service.submit_answer(second, fake_llm, second_view, job, "Question 1?", "A different answer.")

    assert exc_info.value.status_code == 409
    db_session.expire_all()
    stored = db_session.query(Interview).one()
    assert [qa["answer"] for qa in stored.responses] == ["Answer 1."]


def test_second_first_time_insert_conflicts(candidate, db_session, session_factory):
    db_session.add(Interview(candidate_id=candidate.id, responses=[]))
    db_session.commit()

    other = session_factory()
    duplicate = Interview(candidate_id=candidate.id, responses=[])
    other.add(duplicate)

    with pytest.raises(HTTPException) as exc_info:
        interview_service._commit(other, duplicate)

    assert exc_info.value.status_code == 409
    assert db_session.query(Interview).count() == 1
