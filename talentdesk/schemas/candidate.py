"""
Pydantic schemas for candidate endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CandidateUpdate(BaseModel):
    """Full-field update of a candidate's identity."""
    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field("", max_length=50)

    @field_validator("first_name", "last_name", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TextCreateRequest(BaseModel):
    resume_text: str = Field(..., description="Plain resume text to extract contact fields from")

    @field_validator("resume_text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Resume text is required")
        return v


class CandidateSummary(BaseModel):
    """Candidate without the resume blob, used in listings."""
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    resume_file_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CandidateDetail(CandidateSummary):
    resume: str = Field(..., description="Base64-encoded resume file")
    updated_at: Optional[datetime] = None


class CandidateListResponse(BaseModel):
    candidates: List[CandidateSummary]
    total: int


class CandidateEnvelope(BaseModel):
    candidate: CandidateDetail


class CandidateCreateResponse(BaseModel):
    success: bool = True
    message: str = "Candidate created successfully"
    candidate: CandidateSummary
    extracted_info: Optional[dict] = None


class ResumeSummaryResponse(BaseModel):
    valid: bool
    summary: str
