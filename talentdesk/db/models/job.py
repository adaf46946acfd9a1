"""
JobProfile model: an open position and its interview question bank.
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from talentdesk.db.base import Base


class JobProfile(Base):
    """
    Job profile with an embedded, ordered list of questions.

    Each question is a dict: {"question": str, "expected_answer": str}.
    """
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False, index=True)
    department = Column(String, nullable=True)
    location = Column(String, nullable=True)
    type = Column(String, nullable=True)  # "full-time", "contract", ...
    salary = Column(String, nullable=True)
    description = Column(Text, nullable=False)

    questions = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<JobProfile(id={self.id}, title='{self.title}')>"
