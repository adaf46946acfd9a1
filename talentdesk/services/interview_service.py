"""
Interview turn loop.

Each submitted answer is scored, appended to the stored transcript and the
running mean recomputed. The interview ends after a fixed number of answers.
The transcript row carries a version counter, so two concurrent submissions
for the same candidate cannot silently overwrite each other.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from talentdesk.core import config
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.db.models.candidate import Candidate
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.job import JobProfile
from talentdesk.llm.provider import LLMProvider
from talentdesk.services import ai_service
from talentdesk.services.ai_service import DEFAULT_ANSWER_SCORE
from talentdesk.services.resume_parser import ResumeDecodeError, decode_resume, is_pdf

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    evaluation: Dict[str, Any]
    next_question: Optional[str]
    custom_questions: List[Dict[str, str]]
    should_continue: bool
    current_count: int
    max_questions: int
    overall_score: float
    interview_complete: bool
    version: int
    duplicate: bool = False


@dataclass
class StartResult:
    initial_question: str
    custom_questions: List[Dict[str, str]] = field(default_factory=list)
    max_questions: int = 0
    version: int = 0


def max_questions() -> int:
    return config.MAX_INTERVIEW_QUESTIONS


def running_score(history: List[Dict[str, Any]]) -> float:
    """Mean answer score; an unscored answer counts as the neutral score."""
    if not history:
        return 0.0
    total = sum((qa.get("evaluation") or {}).get("score") or DEFAULT_ANSWER_SCORE for qa in history)
    return total / len(history)


def available_custom_questions(job: JobProfile, history: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Job bank questions not yet asked, compared case-insensitively."""
    asked = {str(qa.get("question", "")).lower() for qa in history}
    return [q for q in (job.questions or []) if str(q.get("question", "")).lower() not in asked]


def candidate_context(candidate: Candidate) -> str:
    """Plain-text resume snippet for prompts. PDFs are not inlined."""
    if not candidate.resume:
        return ""
    try:
        data = decode_resume(candidate.resume)
    except ResumeDecodeError:
        logger.warning(f"Could not decode resume for candidate {candidate.id}")
        return ""
    if is_pdf(data):
        return ""
    return data.decode("utf-8", errors="ignore")[:ai_service.CANDIDATE_CONTEXT_CHARS]


def get_interview(db: Session, candidate_id: str) -> Optional[Interview]:
    return execute_with_retry(
        lambda: db.query(Interview).filter(Interview.candidate_id == candidate_id).first(),
        db=db,
    )


def _commit(db: Session, interview: Interview) -> None:
    """Commit a transcript change. A stale version or a duplicate first insert becomes 409."""
    try:
        db.commit()
    except (StaleDataError, IntegrityError):
        db.rollback()
        logger.warning(f"Concurrent interview update rejected: candidate_id={interview.candidate_id}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interview was updated by another request. Reload and try again."
        )
    db.refresh(interview)


def start_interview(
    db: Session,
    provider: LLMProvider,
    candidate: Candidate,
    job: JobProfile,
    restart: bool = False,
) -> StartResult:
    """
    Open (or reset) the candidate's interview and produce the opening question.

    Raises:
        HTTPException: 409 if the interview is complete and restart is False
    """
    interview = get_interview(db, candidate.id)
    if interview is not None and interview.completed and not restart:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interview already completed. Pass restart=true to start over."
        )

    question = ai_service.generate_opening_question(provider, job, candidate_context(candidate))

    if interview is None:
        interview = Interview(candidate_id=candidate.id)
        db.add(interview)
    interview.job_id = job.id
    interview.responses = []
    interview.completed = False
    interview.pending_question = question
    _commit(db, interview)

    logger.info(f"Interview started: candidate_id={candidate.id}, job_id={job.id}")

    return StartResult(
        initial_question=question,
        custom_questions=list(job.questions or []),
        max_questions=max_questions(),
        version=interview.version,
    )


def submit_answer(
    db: Session,
    provider: LLMProvider,
    interview: Interview,
    job: JobProfile,
    question: str,
    answer: str,
    expected_version: Optional[int] = None,
) -> TurnResult:
    """
    Score one answer and decide whether to ask another question.

    Raises:
        HTTPException: 409 if the interview is complete or the version is stale
    """
    limit = max_questions()
    history: List[Dict[str, Any]] = list(interview.responses or [])

    if interview.completed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interview already completed"
        )
    if expected_version is not None and expected_version != interview.version:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interview was updated by another request. Reload and try again."
        )

    # A resubmitted last turn is answered from the transcript instead of being counted twice
    if history and history[-1].get("question") == question and history[-1].get("answer") == answer:
        logger.info(f"Duplicate answer submission ignored: candidate_id={interview.candidate_id}")
        count = len(history)
        should_continue = count < limit
        return TurnResult(
            evaluation=history[-1].get("evaluation") or {},
            next_question=interview.pending_question if should_continue else None,
            custom_questions=available_custom_questions(job, history) if should_continue else [],
            should_continue=should_continue,
            current_count=count,
            max_questions=limit,
            overall_score=round(running_score(history), 1),
            interview_complete=not should_continue,
            version=interview.version,
            duplicate=True,
        )

    evaluation = ai_service.evaluate_answer(provider, job, question, answer).model_dump()
    history.append({"question": question, "answer": answer, "evaluation": evaluation})

    count = len(history)
    overall = running_score(history)
    should_continue = count < limit

    logger.info(
        f"Interview progress: candidate_id={interview.candidate_id}, {count}/{limit}, "
        f"continue={should_continue}, overall_score={overall:.1f}"
    )

    next_question = None
    custom_questions: List[Dict[str, str]] = []
    if should_continue:
        custom_questions = available_custom_questions(job, history)
        next_question = ai_service.generate_next_question(provider, job, history, overall, limit)

    interview.responses = history
    interview.pending_question = next_question
    interview.completed = not should_continue
    _commit(db, interview)

    return TurnResult(
        evaluation=evaluation,
        next_question=next_question,
        custom_questions=custom_questions,
        should_continue=should_continue,
        current_count=count,
        max_questions=limit,
        overall_score=round(overall, 1),
        interview_complete=not should_continue,
        version=interview.version,
    )
