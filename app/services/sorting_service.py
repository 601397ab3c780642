"""
Sorting and recommendation service.

Plain field sorts (date posted, salary, stored application score) are
ordered and paginated in the database. Sorts on a derived score (skill
match, recommendations) load every candidate row, score it in Python, sort,
then slice the requested page.
"""

import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Union
import uuid

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.crud.user import parse_id
from app.models.application import Application
from app.models.job import Job
from app.models.user import JobType, User, UserRole
from app.services.skill_match import calculate_skill_match

logger = logging.getLogger(__name__)

SKILL_WEIGHT = 0.7
LOCATION_WEIGHT = 0.2
JOB_TYPE_WEIGHT = 0.1

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class SortOption(str, enum.Enum):
    DATE_POSTED = "date_posted"
    SALARY = "salary"
    SKILL_MATCH = "skill_match"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class SortParams:
    sort_by: SortOption = SortOption.DATE_POSTED
    order: SortOrder = SortOrder.DESC
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    user_id: Optional[Union[str, uuid.UUID]] = None
    job_id: Optional[Union[str, uuid.UUID]] = None


@dataclass
class JobFilters:
    location: Optional[str] = None
    type: Optional[JobType] = None


@dataclass
class ScoredItem:
    item: Any
    score: Optional[float] = None


@dataclass
class Page:
    """One page of results plus the counts needed for the pagination envelope."""
    items: List[ScoredItem] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _validate_paging(page: int, limit: int) -> None:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")


def _slice(scored: List[ScoredItem], page: int, limit: int) -> Page:
    start = (page - 1) * limit
    return Page(items=scored[start:start + limit], total=len(scored), page=page, limit=limit)


def _paginate_query(query: Query, page: int, limit: int) -> Page:
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=[ScoredItem(row) for row in rows], total=total, page=page, limit=limit)


def _same_location(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


class SortingService:
    """Ranks jobs, applications and candidates."""

    def _active_jobs(self, db: Session) -> Query:
        return db.query(Job).filter(Job.deleted_at.is_(None))

    def _get_user(self, db: Session, user_id) -> User:
        uid = parse_id(user_id)
        user = None
        if uid is not None:
            user = (
                db.query(User)
                .options(selectinload(User.skills))
                .filter(User.id == uid, User.deleted_at.is_(None))
                .first()
            )
        if not user:
            raise NotFoundError("User not found")
        return user

    def _get_job(self, db: Session, job_id) -> Job:
        jid = parse_id(job_id)
        job = None
        if jid is not None:
            job = (
                db.query(Job)
                .options(selectinload(Job.skills))
                .filter(Job.id == jid, Job.deleted_at.is_(None))
                .first()
            )
        if not job:
            raise NotFoundError("Job not found")
        return job

    def sort_jobs(self, db: Session, params: SortParams, filters: Optional[JobFilters] = None) -> Page:
        """
        List jobs sorted by date posted, maximum salary or skill match.

        skill_match needs params.user_id; without it the jobs come back newest
        first instead.
        """
        _validate_paging(params.page, params.limit)
        filters = filters or JobFilters()

        query = self._active_jobs(db)
        if filters.location:
            query = query.filter(func.lower(Job.location) == filters.location.lower())
        if filters.type:
            query = query.filter(Job.type == filters.type)

        descending = params.order == SortOrder.DESC

        if params.sort_by == SortOption.SKILL_MATCH:
            if params.user_id:
                user = self._get_user(db, params.user_id)
                jobs = query.options(selectinload(Job.skills)).order_by(Job.created_at, Job.id).all()
                scored = [ScoredItem(job, calculate_skill_match(job.skills, user.skills)) for job in jobs]
                scored.sort(key=lambda s: s.score, reverse=descending)
                return _slice(scored, params.page, params.limit)

            logger.debug("skill_match sort requested without a user, using date_posted")
            return _paginate_query(query.order_by(Job.created_at.desc(), Job.id), params.page, params.limit)

        if params.sort_by == SortOption.SALARY:
            column = Job.salary_max.desc() if descending else Job.salary_max.asc()
            query = query.order_by(column.nulls_last(), Job.id)
        else:
            column = Job.created_at.desc() if descending else Job.created_at.asc()
            query = query.order_by(column, Job.id)

        return _paginate_query(query, params.page, params.limit)

    def sort_applications(self, db: Session, params: SortParams) -> Page:
        """List applications, optionally for one job, by date or stored skill match score."""
        _validate_paging(params.page, params.limit)

        query = db.query(Application).filter(Application.deleted_at.is_(None))
        if params.job_id:
            jid = parse_id(params.job_id)
            if jid is None:
                return Page(page=params.page, limit=params.limit)
            query = query.filter(Application.job_id == jid)

        descending = params.order == SortOrder.DESC
        if params.sort_by == SortOption.SKILL_MATCH:
            column = Application.skill_match_score.desc() if descending else Application.skill_match_score.asc()
            query = query.order_by(column.nulls_last(), Application.id)
        else:
            column = Application.created_at.desc() if descending else Application.created_at.asc()
            query = query.order_by(column, Application.id)

        return _paginate_query(query, params.page, params.limit)

    def get_recommended_jobs(
        self,
        db: Session,
        user_id: Union[str, uuid.UUID],
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT
    ) -> Page:
        """
        Rank open jobs for a developer.

        score = 0.7 * skill match + 0.2 * same location + 0.1 * preferred job type.
        Equal scores keep their retrieval order.

        Raises:
            NotFoundError: If the user does not exist
        """
        _validate_paging(page, limit)
        user = self._get_user(db, user_id)

        now = datetime.now(timezone.utc)
        jobs = (
            self._active_jobs(db)
            .filter(or_(Job.expires_at.is_(None), Job.expires_at > now))
            .options(selectinload(Job.skills))
            .order_by(Job.created_at, Job.id)
            .all()
        )

        scored = []
        for job in jobs:
            skill_score = calculate_skill_match(job.skills, user.skills)
            location_score = 1.0 if _same_location(user.location, job.location) else 0.0
            type_score = 1.0 if user.preferred_job_type is not None and user.preferred_job_type == job.type else 0.0
            score = SKILL_WEIGHT * skill_score + LOCATION_WEIGHT * location_score + JOB_TYPE_WEIGHT * type_score
            scored.append(ScoredItem(job, score))

        scored.sort(key=lambda s: s.score, reverse=True)
        return _slice(scored, page, limit)

    def get_recommended_candidates(
        self,
        db: Session,
        job_id: Union[str, uuid.UUID],
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT
    ) -> Page:
        """
        Rank developers for a job by skill match only.

        The job's creator is never recommended for their own job.

        Raises:
            NotFoundError: If the job does not exist
        """
        _validate_paging(page, limit)
        job = self._get_job(db, job_id)

        developers = (
            db.query(User)
            .options(selectinload(User.skills))
            .filter(
                User.role == UserRole.DEVELOPER,
                User.deleted_at.is_(None),
                User.id != job.user_id,
            )
            .order_by(User.created_at, User.id)
            .all()
        )

        scored = [ScoredItem(dev, calculate_skill_match(job.skills, dev.skills)) for dev in developers]
        scored.sort(key=lambda s: s.score, reverse=True)
        return _slice(scored, page, limit)
