"""
Interview endpoints: the AI question/answer loop and the final verdict.

The turn endpoints are used by the interviewee and need no recruiter session;
reading or generating the final evaluation does.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from talentdesk.core.auth_dependency import get_current_user
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.db.session import get_db
from talentdesk.db.models.candidate import Candidate
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.interview_evaluation import InterviewEvaluation
from talentdesk.db.models.job import JobProfile
from talentdesk.llm.dependency import get_llm_provider
from talentdesk.llm.provider import LLMProvider
from talentdesk.schemas.interview import (
    EvaluateAnswerRequest,
    EvaluateAnswerResponse,
    FinalEvaluationRequest,
    FinalEvaluationResponse,
    InterviewEnvelope,
    InterviewResponse,
    InterviewStats,
    JobSummary,
    Progress,
    StartInterviewRequest,
    StartInterviewResponse,
    StoredEvaluationResponse,
    TranscriptUpsertRequest,
)
from talentdesk.services import ai_service, interview_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interviews", tags=["Interviews"])


def _get_or_404(db: Session, model, detail: str, *criteria):
    row = execute_with_retry(lambda: db.query(model).filter(*criteria).first(), db=db)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return row


def get_interview_or_404(candidate_id: str, db: Session) -> Interview:
    return _get_or_404(db, Interview, "Interview not found", Interview.candidate_id == candidate_id)


@router.post("/start", response_model=StartInterviewResponse)
def start_interview(
    payload: StartInterviewRequest,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """Reset the candidate's transcript and return the opening question."""
    job = _get_or_404(db, JobProfile, "Job not found", JobProfile.id == payload.job_profile_id)
    candidate = _get_or_404(db, Candidate, "Candidate not found", Candidate.id == payload.candidate_id)

    result = interview_service.start_interview(db, provider, candidate, job, restart=payload.restart)

    return StartInterviewResponse(
        initial_question=result.initial_question,
        custom_questions=result.custom_questions,
        max_questions=result.max_questions,
        version=result.version,
        job_profile=JobSummary(title=job.title, description=job.description),
    )


@router.post("/evaluate", response_model=EvaluateAnswerResponse)
def evaluate_answer(
    payload: EvaluateAnswerRequest,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """Score one answer and return the next question, or mark the interview complete."""
    interview = get_interview_or_404(payload.candidate_id, db)
    if interview.job_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    job = _get_or_404(db, JobProfile, "Job not found", JobProfile.id == interview.job_id)

    result = interview_service.submit_answer(
        db,
        provider,
        interview,
        job,
        question=payload.current_question.strip(),
        answer=payload.current_answer.strip(),
        expected_version=payload.version,
    )

    return EvaluateAnswerResponse(
        evaluation=result.evaluation,
        next_question=result.next_question,
        custom_questions=result.custom_questions,
        should_continue=result.should_continue,
        progress=Progress(
            current_count=result.current_count,
            max_questions=result.max_questions,
            overall_score=result.overall_score,
        ),
        interview_complete=result.interview_complete,
        version=result.version,
        duplicate=result.duplicate,
    )


@router.post("", response_model=InterviewEnvelope)
def upsert_transcript(payload: TranscriptUpsertRequest, db: Session = Depends(get_db)):
    """Store a full transcript for a candidate, replacing any existing one."""
    _get_or_404(db, Candidate, "Candidate not found", Candidate.id == payload.candidate_id)

    interview = interview_service.get_interview(db, payload.candidate_id)
    try:
        if interview is None:
            interview = Interview(candidate_id=payload.candidate_id)
            db.add(interview)
        interview.responses = [entry.model_dump(exclude_none=True) for entry in payload.responses]
        db.commit()
        db.refresh(interview)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to save interview: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save or update interview"
        )

    return InterviewEnvelope(interview=InterviewResponse.model_validate(interview))


@router.get("/final-evaluation", response_model=StoredEvaluationResponse, dependencies=[Depends(get_current_user)])
def get_final_evaluation(
    candidate_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    stored = execute_with_retry(
        lambda: db.query(InterviewEvaluation).filter(InterviewEvaluation.candidate_id == candidate_id).first(),
        db=db,
    )
    return StoredEvaluationResponse(evaluation=stored.evaluation if stored else None)


@router.post("/final-evaluation", response_model=FinalEvaluationResponse, dependencies=[Depends(get_current_user)])
def create_final_evaluation(
    payload: FinalEvaluationRequest,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """Synthesize the hire/no-hire verdict from the transcript and store it."""
    interview = get_interview_or_404(payload.candidate_id, db)
    history = list(interview.responses or [])
    if not history:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Interview has no answers yet")
    candidate = _get_or_404(db, Candidate, "Candidate not found", Candidate.id == payload.candidate_id)

    evaluation = ai_service.generate_final_evaluation(provider, candidate, history).model_dump()

    try:
        stored = db.query(InterviewEvaluation).filter(InterviewEvaluation.candidate_id == candidate.id).first()
        if stored is None:
            stored = InterviewEvaluation(candidate_id=candidate.id, evaluation=evaluation)
            db.add(stored)
        else:
            stored.evaluation = evaluation
            stored.created_at = datetime.now(timezone.utc)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to store final evaluation: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate final evaluation"
        )

    logger.info(
        f"Final evaluation stored: candidate_id={candidate.id}, "
        f"recommendation={evaluation['recommendation']}, score={evaluation['overall_score']}"
    )

    return FinalEvaluationResponse(
        evaluation=evaluation,
        interview_stats=InterviewStats(
            total_questions=len(history),
            average_score=round(interview_service.running_score(history), 2),
            completion_time=datetime.now(timezone.utc),
        ),
    )


@router.get("/{candidate_id}", response_model=InterviewEnvelope)
def get_interview(candidate_id: str, db: Session = Depends(get_db)):
    return InterviewEnvelope(interview=InterviewResponse.model_validate(get_interview_or_404(candidate_id, db)))
