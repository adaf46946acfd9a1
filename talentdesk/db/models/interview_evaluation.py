import uuid
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentdesk.db.base import Base


class InterviewEvaluation(Base):
    __tablename__ = "interview_evaluations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    candidate_id = Column(String(36), ForeignKey("candidates.id"), unique=True, nullable=False)

    # overall_score, recommendation, summary, detailed_feedback, ...
    evaluation = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    candidate = relationship("Candidate", back_populates="final_evaluation")
