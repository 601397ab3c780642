"""
Database models package.
"""

from app.models.user import User, UserRole, JobType
from app.models.skill import Skill, SkillLevel, UserSkill
from app.models.job import Job, JobSkill
from app.models.application import Application, ApplicationStatus, InterviewStatus
from app.models.document import Document
from app.models.notification import Notification
from app.models.saved_job import SavedJob

__all__ = [
    "User", "UserRole", "JobType",
    "Skill", "SkillLevel", "UserSkill",
    "Job", "JobSkill",
    "Application", "ApplicationStatus", "InterviewStatus",
    "Document", "Notification", "SavedJob",
]
