import uuid
from sqlalchemy import Column, String, Text, Float, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.skill import SkillLevel
from app.models.user import JobType


class Job(Base):
    """
    Job posting created by a recruiter.

    user_id is the creator and the owner for access-control purposes.
    Jobs are soft-deleted via deleted_at and stop being recommended once
    expires_at has passed.
    """
    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    location = Column(String, nullable=True)
    type = Column(Enum(JobType), default=JobType.FULL_TIME, nullable=False)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    creator = relationship("User", back_populates="jobs")
    skills = relationship("JobSkill", back_populates="job", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="job")

    def __repr__(self):
        return f"<Job(id={self.id}, title='{self.title}')>"


class JobSkill(Base):
    """A skill required by a job at a minimum level."""
    __tablename__ = "job_skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    job_id = Column(Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Uuid, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True)
    level = Column(Enum(SkillLevel), nullable=False)

    job = relationship("Job", back_populates="skills")
    skill = relationship("Skill")

    __table_args__ = (
        UniqueConstraint("job_id", "skill_id", name="uq_job_skills_job_skill"),
    )
