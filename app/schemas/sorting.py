"""
Pydantic schemas for sorted and recommended listings.
"""

from pydantic import BaseModel, UUID4
from typing import Generic, List, Optional, TypeVar
from datetime import datetime

from app.models.application import ApplicationStatus
from app.models.user import JobType

T = TypeVar("T")


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class JobListItem(BaseModel):
    id: UUID4
    user_id: UUID4
    title: str
    location: Optional[str] = None
    type: JobType
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    match_score: Optional[float] = None

    class Config:
        from_attributes = True


class ApplicationListItem(BaseModel):
    id: UUID4
    user_id: UUID4
    job_id: UUID4
    status: ApplicationStatus
    skill_match_score: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CandidateListItem(BaseModel):
    id: UUID4
    email: str
    name: Optional[str] = None
    location: Optional[str] = None
    match_score: Optional[float] = None

    class Config:
        from_attributes = True
