"""
Candidate endpoints.

Candidates are created manually (form + resume upload), from an uploaded
resume whose contact fields are extracted by AI, or from pasted resume text.
Resumes are stored as base64 text.
"""
import logging
import re
import time
from urllib.parse import quote
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from talentdesk.core import config
from talentdesk.core.auth_dependency import get_current_user
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.core.logging_config import sanitize_log_data
from talentdesk.core.rate_limit import RateLimiter
from talentdesk.db.session import get_db
from talentdesk.db.models.candidate import Candidate
from talentdesk.llm.dependency import get_llm_provider
from talentdesk.llm.provider import LLMProvider
from talentdesk.schemas.candidate import (
    CandidateCreateResponse,
    CandidateDetail,
    CandidateEnvelope,
    CandidateListResponse,
    CandidateSummary,
    CandidateUpdate,
    ResumeSummaryResponse,
    TextCreateRequest,
)
from talentdesk.services import ai_service
from talentdesk.services.ai_service import CandidateInfo
from talentdesk.services.resume_parser import (
    ResumeDecodeError,
    decode_resume,
    encode_resume,
    extract_resume_text,
    is_pdf,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/candidates", tags=["Candidates"], dependencies=[Depends(get_current_user)])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def get_candidate_or_404(candidate_id: str, db: Session) -> Candidate:
    candidate = execute_with_retry(
        lambda: db.query(Candidate).filter(Candidate.id == candidate_id).first(),
        db=db,
    )
    if not candidate:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return candidate


async def read_resume_upload(resume: UploadFile) -> bytes:
    """Read an uploaded resume, enforcing the size limit."""
    data = await resume.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resume file is empty")
    if len(data) > config.MAX_RESUME_BYTES:
        limit_mb = config.MAX_RESUME_BYTES // (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Resume file exceeds the {limit_mb}MB limit"
        )
    return data


def content_disposition(file_name: str) -> str:
    """Attachment header with an ASCII fallback name and the exact name percent-encoded."""
    fallback = "".join(c for c in file_name if c.isascii() and c.isprintable() and c not in '"\\') or "resume"
    return f'attachment; filename="{fallback}"; filename*=UTF-8\'\'{quote(file_name, safe="")}'


def _resume_text_or_400(candidate: Candidate) -> str:
    try:
        data = decode_resume(candidate.resume)
    except ResumeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stored resume is corrupted")
    text = extract_resume_text(data)
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not read text from the stored resume")
    return text


def _save_extracted_candidate(db: Session, info: CandidateInfo, data: bytes, file_name: str) -> Candidate:
    candidate = Candidate(
        first_name=info.first_name,
        last_name=info.last_name,
        email=info.email.lower(),
        phone=info.phone,
        resume=encode_resume(data),
        resume_file_name=file_name,
    )
    db.add(candidate)
    db.commit()
    db.refresh(candidate)
    return candidate


@router.get("", response_model=CandidateListResponse)
def list_candidates(db: Session = Depends(get_db)):
    candidates = execute_with_retry(
        lambda: db.query(Candidate).order_by(Candidate.created_at.desc()).all(),
        db=db,
    )
    return CandidateListResponse(
        candidates=[CandidateSummary.model_validate(c) for c in candidates],
        total=len(candidates),
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CandidateCreateResponse)
async def create_candidate(
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: str = Form(""),
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    """Create a candidate from form fields and an uploaded resume."""
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    email = (email or "").strip()
    if not first_name or not last_name or not email or resume is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="first_name, last_name, email and a resume file are required"
        )
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email address")

    data = await read_resume_upload(resume)

    try:
        candidate = Candidate(
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            phone=phone.strip(),
            resume=encode_resume(data),
            resume_file_name=resume.filename or "resume.pdf",
        )
        db.add(candidate)
        db.commit()
        db.refresh(candidate)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create candidate: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create candidate")

    logger.info(f"Candidate created: candidate_id={candidate.id}, resume_bytes={len(data)}")

    return CandidateCreateResponse(candidate=CandidateSummary.model_validate(candidate))


@router.post(
    "/smart-create",
    status_code=status.HTTP_201_CREATED,
    response_model=CandidateCreateResponse,
    dependencies=[Depends(RateLimiter("resume upload", 30))],
)
async def smart_create_candidate(
    resume: UploadFile = File(...),
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """
    Create a candidate from a resume alone.

    PDFs are first read natively by the model; if that fails the text is
    extracted locally and the fields are pulled from the text instead.
    """
    data = await read_resume_upload(resume)
    file_name = resume.filename or "resume.pdf"
    logger.info(f"Smart create: file={file_name}, size={len(data) / 1024:.1f}KB")

    info: Optional[CandidateInfo] = None
    if is_pdf(data):
        try:
            info = ai_service.extract_candidate_info_from_pdf(provider, data, file_name)
        except Exception as e:
            logger.warning(f"Native PDF extraction failed, falling back to text extraction: {e}")

    if info is None:
        text = extract_resume_text(data)
        if not text:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": "Unable to automatically extract information from this resume. "
                             "Please create the candidate manually instead.",
                    "suggestion": "The file format is not compatible with automatic extraction.",
                    "file_name": file_name,
                }
            )
        info = ai_service.extract_candidate_info_from_text(provider, text, file_name)

    if not info.is_complete:
        logger.info("Smart create: required fields missing from AI extraction")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Could not extract required information",
                "extracted_info": info.model_dump(),
                "hint": "Make sure the resume contains clear contact information",
            }
        )

    try:
        candidate = _save_extracted_candidate(db, info, data, file_name)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to save extracted candidate: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create candidate")

    logger.info(f"Candidate created from resume: candidate_id={candidate.id}")

    return CandidateCreateResponse(
        candidate=CandidateSummary.model_validate(candidate),
        extracted_info=info.model_dump(),
    )


@router.post("/text-create", status_code=status.HTTP_201_CREATED, response_model=CandidateCreateResponse)
def text_create_candidate(
    payload: TextCreateRequest,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """Create a candidate from pasted resume text."""
    info = ai_service.extract_candidate_info_from_text(provider, payload.resume_text)

    if not info.is_complete:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Could not extract required information (first_name, last_name, email)",
                "extracted_info": info.model_dump(),
                "resume_preview": payload.resume_text[:500],
            }
        )
    if not EMAIL_RE.match(info.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid email address extracted", "extracted_info": info.model_dump()}
        )

    file_name = f"resume-text-{int(time.time() * 1000)}.txt"
    try:
        candidate = _save_extracted_candidate(db, info, payload.resume_text.encode("utf-8"), file_name)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create candidate from text: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create candidate")

    return CandidateCreateResponse(
        message="Candidate created successfully from resume text",
        candidate=CandidateSummary.model_validate(candidate),
        extracted_info=info.model_dump(),
    )


@router.get("/{candidate_id}", response_model=CandidateEnvelope)
def get_candidate(candidate_id: str, db: Session = Depends(get_db)):
    candidate = get_candidate_or_404(candidate_id, db)
    return CandidateEnvelope(candidate=CandidateDetail.model_validate(candidate))


@router.put("/{candidate_id}", response_model=CandidateEnvelope)
def update_candidate(candidate_id: str, payload: CandidateUpdate, db: Session = Depends(get_db)):
    """Replace every identity field of a candidate."""
    logger.debug(f"Candidate update: candidate_id={candidate_id}, {sanitize_log_data(payload.model_dump())}")
    candidate = get_candidate_or_404(candidate_id, db)

    try:
        candidate.first_name = payload.first_name
        candidate.last_name = payload.last_name
        candidate.email = payload.email.lower()
        candidate.phone = payload.phone
        db.commit()
        db.refresh(candidate)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update candidate: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update candidate")

    logger.info(f"Candidate updated: candidate_id={candidate.id}")

    return CandidateEnvelope(candidate=CandidateDetail.model_validate(candidate))


@router.put("/{candidate_id}/resume", response_model=CandidateEnvelope)
async def replace_resume(candidate_id: str, resume: UploadFile = File(...), db: Session = Depends(get_db)):
    candidate = get_candidate_or_404(candidate_id, db)
    data = await read_resume_upload(resume)

    try:
        candidate.resume = encode_resume(data)
        candidate.resume_file_name = resume.filename or candidate.resume_file_name
        db.commit()
        db.refresh(candidate)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to replace resume: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to replace resume")

    logger.info(f"Resume replaced: candidate_id={candidate.id}, resume_bytes={len(data)}")

    return CandidateEnvelope(candidate=CandidateDetail.model_validate(candidate))


@router.get("/{candidate_id}/resume")
def download_resume(candidate_id: str, db: Session = Depends(get_db)):
    candidate = get_candidate_or_404(candidate_id, db)
    try:
        data = decode_resume(candidate.resume)
    except ResumeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stored resume is corrupted")

    media_type = "application/pdf" if is_pdf(data) else "text/plain; charset=utf-8"
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(candidate.resume_file_name)},
    )


@router.get("/{candidate_id}/resume-review")
def resume_review(
    candidate_id: str,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    candidate = get_candidate_or_404(candidate_id, db)
    review = ai_service.review_resume(provider, _resume_text_or_400(candidate))
    return {"feedback": review.model_dump()}


@router.get("/{candidate_id}/resume-summary", response_model=ResumeSummaryResponse)
def resume_summary(
    candidate_id: str,
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    candidate = get_candidate_or_404(candidate_id, db)
    summary = ai_service.summarize_resume(provider, _resume_text_or_400(candidate))
    return ResumeSummaryResponse(valid=True, summary=summary)


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_candidate(candidate_id: str, db: Session = Depends(get_db)):
    """Delete a candidate together with its interview and final evaluation."""
    candidate = get_candidate_or_404(candidate_id, db)

    try:
        db.delete(candidate)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete candidate: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete candidate")

    logger.info(f"Candidate deleted: candidate_id={candidate_id}")

    return None
