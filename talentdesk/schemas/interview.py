"""
Pydantic schemas for the interview loop and final evaluation.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class StartInterviewRequest(BaseModel):
    candidate_id: str
    job_profile_id: str
    restart: bool = Field(False, description="Discard a completed transcript and start over")


class JobSummary(BaseModel):
    title: str
    description: Optional[str] = None


class StartInterviewResponse(BaseModel):
    initial_question: str
    custom_questions: List[Dict[str, Any]]
    max_questions: int
    version: int
    job_profile: JobSummary


class EvaluateAnswerRequest(BaseModel):
    candidate_id: str
    current_question: str = Field(..., min_length=1)
    current_answer: str = Field(..., min_length=1)
    version: Optional[int] = Field(None, description="Transcript version the answer was given against")


class Progress(BaseModel):
    current_count: int
    max_questions: int
    overall_score: float


class EvaluateAnswerResponse(BaseModel):
    evaluation: Dict[str, Any]
    next_question: Optional[str]
    custom_questions: List[Dict[str, Any]]
    should_continue: bool
    progress: Progress
    interview_complete: bool
    version: int
    duplicate: bool = False


class QAEntry(BaseModel):
    question: str
    answer: str
    evaluation: Optional[Dict[str, Any]] = None


class TranscriptUpsertRequest(BaseModel):
    candidate_id: str
    responses: List[QAEntry]


class InterviewResponse(BaseModel):
    id: str
    candidate_id: str
    job_id: Optional[str] = None
    responses: List[Dict[str, Any]]
    pending_question: Optional[str] = None
    completed: bool
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InterviewEnvelope(BaseModel):
    interview: InterviewResponse


class FinalEvaluationRequest(BaseModel):
    candidate_id: str


class InterviewStats(BaseModel):
    total_questions: int
    average_score: float
    completion_time: datetime


class FinalEvaluationResponse(BaseModel):
    success: bool = True
    evaluation: Dict[str, Any]
    interview_stats: InterviewStats


class StoredEvaluationResponse(BaseModel):
    evaluation: Optional[Dict[str, Any]] = None
