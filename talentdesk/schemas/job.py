"""
Pydantic schemas for job profile endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class QuestionItem(BaseModel):
    question: str = Field(..., description="Interview question text")
    expected_answer: Optional[str] = Field("", description="What a good answer covers")


class JobProfileCreate(BaseModel):
    """Schema for creating a job profile."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    department: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = Field(None, description="Employment type")
    salary: Optional[str] = None
    questions: List[QuestionItem] = Field(default_factory=list)


class JobProfileUpdate(BaseModel):
    """
    Partial update. Omitted fields are left untouched.

    `questions` is merged into the bank (question_mode="append", default) or
    replaces it wholesale (question_mode="replace").
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    department: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    salary: Optional[str] = None
    questions: Optional[List[QuestionItem]] = None
    question_mode: str = Field("append", pattern="^(append|replace)$")


class JobProfileResponse(BaseModel):
    id: str
    title: str
    department: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    salary: Optional[str] = None
    description: str
    questions: List[QuestionItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class JobProfileListResponse(BaseModel):
    jobs: List[JobProfileResponse]
    total: int


class JobCreateResponse(BaseModel):
    success: bool = True
    job_id: str
    job: JobProfileResponse
