"""
Interview report endpoints, generated on demand from the stored transcript.
"""
import logging
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from talentdesk.core.auth_dependency import get_current_user
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.db.session import get_db
from talentdesk.db.models.interview import Interview
from talentdesk.llm.dependency import get_llm_provider
from talentdesk.llm.provider import LLMProvider
from talentdesk.services import ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"], dependencies=[Depends(get_current_user)])


def load_transcript(candidate_id: str, db: Session) -> List[Dict[str, Any]]:
    interview = execute_with_retry(
        lambda: db.query(Interview).filter(Interview.candidate_id == candidate_id).first(),
        db=db,
    )
    if not interview:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interview not found")
    if not interview.responses:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No stored responses for this candidate")
    return list(interview.responses)


@router.get("/{candidate_id}")
def get_report(
    candidate_id: str,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    report = ai_service.generate_report(provider, load_transcript(candidate_id, db))
    logger.info(f"Report generated: candidate_id={candidate_id}, recommendation={report.hire_recommendation}")
    return {"report": report.model_dump(exclude_none=True)}


@router.get("/{candidate_id}/feedback")
def get_feedback(
    candidate_id: str,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    report = ai_service.generate_feedback(provider, load_transcript(candidate_id, db))
    logger.info(f"Feedback generated: candidate_id={candidate_id}, questions={len(report.per_question or [])}")
    return {"report": report.model_dump()}
