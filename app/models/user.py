"""
User model for authentication and role-based access.

Besides profile data, the user row carries the two pieces of mutable session
state shared across requests: token_version (refresh-token invalidation) and
last_active_at (inactivity timeout).
"""

import enum
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Enum, Uuid, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserRole(str, enum.Enum):
    DEVELOPER = "DEVELOPER"
    RECRUITER = "RECRUITER"
    ADMIN = "ADMIN"


class JobType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"
    FREELANCE = "FREELANCE"


class User(Base):
    """
    User account.

    token_version starts at 0 and is incremented on every refresh-token
    rotation and on forced logout. A refresh token is only valid while its
    embedded version equals this column.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Authentication credentials
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.DEVELOPER, nullable=False)

    # Session state
    token_version = Column(Integer, default=0, nullable=False)
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    # User profile (used by job recommendations)
    name = Column(String, nullable=True)
    location = Column(String, nullable=True)
    preferred_job_type = Column(Enum(JobType), nullable=True)

    # Password reset
    reset_token = Column(String, nullable=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    skills = relationship("UserSkill", back_populates="user", cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="creator")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role.value})>"
