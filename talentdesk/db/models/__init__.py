"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from talentdesk.db.models.user import User
from talentdesk.db.models.candidate import Candidate
from talentdesk.db.models.job import JobProfile
from talentdesk.db.models.interview import Interview
from talentdesk.db.models.interview_evaluation import InterviewEvaluation

# Explicitly export all models for clarity
__all__ = [
    "User",
    "Candidate",
    "JobProfile",
    "Interview",
    "InterviewEvaluation",
]
