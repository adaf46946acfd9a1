"""
Candidate model: identity fields plus the uploaded resume stored as base64 text.
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from talentdesk.db.base import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False, default="")

    resume = Column(Text, nullable=False)  # base64-encoded file bytes
    resume_file_name = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    interview = relationship(
        "Interview",
        back_populates="candidate",
        uselist=False,
        cascade="all, delete-orphan",
    )
    final_evaluation = relationship(
        "InterviewEvaluation",
        back_populates="candidate",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Candidate(id={self.id}, email='{self.email}')>"
