"""
Job profile endpoints.

Job profiles carry the interview question bank used by the interview loop.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from talentdesk.core.auth_dependency import get_current_user
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.db.session import get_db
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.job import JobProfile
from talentdesk.schemas.job import (
    JobCreateResponse,
    JobProfileCreate,
    JobProfileListResponse,
    JobProfileResponse,
    JobProfileUpdate,
)
from talentdesk.services.question_bank import apply_question_update, clean_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/job-profiles", tags=["Job Profiles"], dependencies=[Depends(get_current_user)])


def get_job_or_404(job_id: str, db: Session) -> JobProfile:
    job = execute_with_retry(
        lambda: db.query(JobProfile).filter(JobProfile.id == job_id).first(),
        db=db,
    )
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


@router.get("", response_model=JobProfileListResponse)
def list_jobs(db: Session = Depends(get_db)):
    """List job profiles, newest first."""
    jobs = execute_with_retry(
        lambda: db.query(JobProfile).order_by(JobProfile.created_at.desc()).all(),
        db=db,
    )
    return JobProfileListResponse(
        jobs=[JobProfileResponse.model_validate(job) for job in jobs],
        total=len(jobs),
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=JobCreateResponse)
def create_job(job_data: JobProfileCreate, db: Session = Depends(get_db)):
    try:
        job = JobProfile(
            title=job_data.title.strip(),
            department=job_data.department,
            location=job_data.location,
            type=job_data.type,
            salary=job_data.salary,
            description=job_data.description,
            questions=clean_questions(job_data.questions),
        )
        execute_with_retry(lambda: _insert(db, job), db=db)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create job: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create job")

    logger.info(f"Job created: job_id={job.id}, title={job.title}")

    return JobCreateResponse(job_id=job.id, job=JobProfileResponse.model_validate(job))


def _insert(db: Session, job: JobProfile) -> None:
    db.add(job)
    db.commit()
    db.refresh(job)


@router.get("/{job_id}", response_model=JobProfileResponse)
def get_job(job_id: str, db: Session = Depends(get_db)):
    return JobProfileResponse.model_validate(get_job_or_404(job_id, db))


@router.patch("/{job_id}", response_model=JobProfileResponse)
def update_job(job_id: str, job_data: JobProfileUpdate, db: Session = Depends(get_db)):
    """
    Update provided fields and, when `questions` is sent, the question bank.

    Append mode merges by case-insensitive question text and never shrinks
    the bank; replace mode stores exactly the cleaned submitted list.
    """
    job = get_job_or_404(job_id, db)

    update_data = job_data.model_dump(exclude_unset=True, exclude={"questions", "question_mode"})
    try:
        for field, value in update_data.items():
            if value is not None:
                setattr(job, field, value)

        if job_data.questions is not None:
            job.questions = apply_question_update(
                list(job.questions or []),
                [q.model_dump() for q in job_data.questions],
                job_data.question_mode,
            )

        db.commit()
        db.refresh(job)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update job: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update job")

    logger.info(f"Job updated: job_id={job.id}, questions={len(job.questions or [])}")

    return JobProfileResponse.model_validate(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(job_id: str, db: Session = Depends(get_db)):
    """Delete a job profile. Interviews that used it keep their transcript."""
    job = get_job_or_404(job_id, db)

    try:
        for interview in db.query(Interview).filter(Interview.job_id == job.id).all():
            interview.job_id = None
        db.delete(job)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to delete job: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete job")

    logger.info(f"Job deleted: job_id={job_id}")

    return None
