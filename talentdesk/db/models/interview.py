"""
Interview transcript, one per candidate, updated turn by turn.
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, JSON, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentdesk.db.base import Base


class Interview(Base):
    """
    Ordered list of {"question", "answer", "evaluation"?} entries for a candidate.

    `version` is an optimistic-lock counter: every flush bumps it and an UPDATE
    against a stale version raises StaleDataError.
    """
    __tablename__ = "interviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    candidate_id = Column(String(36), ForeignKey("candidates.id"), unique=True, nullable=False)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)

    responses = Column(JSON, nullable=False, default=list)
    pending_question = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    candidate = relationship("Candidate", back_populates="interview")
    job = relationship("JobProfile")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Interview(candidate_id={self.candidate_id}, turns={len(self.responses or [])})>"
