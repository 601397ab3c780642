"""
Sorting and recommendation endpoints.

- GET /sorting/jobs: Jobs sorted by date, salary or skill match
- GET /sorting/jobs/recommended: Jobs ranked for the current developer
- GET /sorting/applications/{job_id}: Applications for a job (recruiter owner or admin)
- GET /sorting/candidates/{job_id}: Developers ranked for a job (recruiter owner or admin)
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_principal, get_sorting_service, require_ownership, require_roles
from app.core.ownership import ResourceType
from app.core.security import Principal
from app.models.user import JobType, UserRole
from app.schemas.sorting import (
    ApplicationListItem,
    CandidateListItem,
    JobListItem,
    PaginatedResponse,
    Pagination,
)
from app.services.sorting_service import JobFilters, Page, SortingService, SortOption, SortOrder, SortParams

router = APIRouter(prefix="/sorting", tags=["Sorting"])


def _envelope(page: Page, schema) -> dict:
    data = []
    for scored in page.items:
        item = schema.model_validate(scored.item)
        if scored.score is not None and "match_score" in schema.model_fields:
            item.match_score = scored.score
        data.append(item)

    return {
        "data": data,
        "pagination": Pagination(
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        ),
    }


@router.get("/jobs", response_model=PaginatedResponse[JobListItem])
def get_sorted_jobs(
    sort_by: SortOption = Query(SortOption.DATE_POSTED),
    order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    location: Optional[str] = Query(None),
    type: Optional[JobType] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    sorting_service: SortingService = Depends(get_sorting_service)
):
    """
    List jobs sorted by date posted, maximum salary or skill match.

    skill_match scores each job against the caller's own skills.
    """
    params = SortParams(sort_by=sort_by, order=order, page=page, limit=limit, user_id=principal.id)
    result = sorting_service.sort_jobs(db, params, JobFilters(location=location, type=type))
    return _envelope(result, JobListItem)


@router.get("/jobs/recommended", response_model=PaginatedResponse[JobListItem])
def get_recommended_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    sorting_service: SortingService = Depends(get_sorting_service)
):
    """Open jobs ranked by skills (70%), location (20%) and preferred job type (10%)."""
    result = sorting_service.get_recommended_jobs(db, principal.id, page, limit)
    return _envelope(result, JobListItem)


@router.get("/applications/{job_id}", response_model=PaginatedResponse[ApplicationListItem])
def get_sorted_applications(
    job_id: str,
    sort_by: SortOption = Query(SortOption.DATE_POSTED),
    order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_roles(UserRole.RECRUITER, UserRole.ADMIN)),
    owner: Principal = Depends(require_ownership(ResourceType.JOB, id_param="job_id")),
    db: Session = Depends(get_db),
    sorting_service: SortingService = Depends(get_sorting_service)
):
    """Applications for one job, by date or stored skill match score."""
    params = SortParams(sort_by=sort_by, order=order, page=page, limit=limit, job_id=job_id)
    result = sorting_service.sort_applications(db, params)
    return _envelope(result, ApplicationListItem)


@router.get("/candidates/{job_id}", response_model=PaginatedResponse[CandidateListItem])
def get_recommended_candidates(
    job_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_roles(UserRole.RECRUITER, UserRole.ADMIN)),
    owner: Principal = Depends(require_ownership(ResourceType.JOB, id_param="job_id")),
    db: Session = Depends(get_db),
    sorting_service: SortingService = Depends(get_sorting_service)
):
    """Developers ranked by how well their skills match the job."""
    result = sorting_service.get_recommended_candidates(db, job_id, page, limit)
    return _envelope(result, CandidateListItem)
