"""
Application model.

An application links a developer (user_id) to a job. recruiter_id is the
recruiter assigned when an interview is scheduled; it grants access to the
application independently of who created the job.
"""

import enum
import uuid
from sqlalchemy import Column, Float, DateTime, Enum, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    INTERVIEW = "INTERVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Application(Base):
    __tablename__ = "applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    job_id = Column(Uuid, ForeignKey("jobs.id"), nullable=False, index=True)
    status = Column(Enum(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False)

    # Interview assignment
    recruiter_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    interview_status = Column(Enum(InterviewStatus), nullable=True)
    interview_date = Column(DateTime(timezone=True), nullable=True)

    # Denormalized score used for recruiter-side sorting
    skill_match_score = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    job = relationship("Job", back_populates="applications")
    applicant = relationship("User", foreign_keys=[user_id])
    recruiter = relationship("User", foreign_keys=[recruiter_id])

    def __repr__(self):
        return f"<Application(id={self.id}, job_id={self.job_id}, user_id={self.user_id})>"
