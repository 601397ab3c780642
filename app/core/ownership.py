"""
Per-resource ownership checks.

Role checks answer "may this kind of user call this route"; ownership checks
answer "may this user touch this particular record". ADMIN bypasses all
ownership checks. Recruiters get extra access to jobs they created and to
applications on those jobs (or applications they were assigned to interview).
"""

import enum
import logging
from typing import Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging_config import log_error
from app.core.security import Principal
from app.crud.user import parse_id
from app.models.application import Application
from app.models.document import Document
from app.models.job import Job
from app.models.notification import Notification
from app.models.saved_job import SavedJob
from app.models.skill import UserSkill
from app.models.user import UserRole

logger = logging.getLogger(__name__)


class ResourceType(str, enum.Enum):
    USER = "user"
    JOB = "job"
    APPLICATION = "application"
    USER_SKILL = "userSkill"
    DOCUMENT = "document"
    NOTIFICATION = "notification"
    SAVED_JOB = "savedJob"


# Every record-backed resource type; USER compares ids directly
RESOURCE_MODELS = {
    ResourceType.JOB: Job,
    ResourceType.APPLICATION: Application,
    ResourceType.USER_SKILL: UserSkill,
    ResourceType.DOCUMENT: Document,
    ResourceType.NOTIFICATION: Notification,
    ResourceType.SAVED_JOB: SavedJob,
}

FORBIDDEN_MESSAGE = "You do not have permission to access this resource"


def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_MESSAGE)


def _resolve_type(resource_type: Union[ResourceType, str]) -> Optional[ResourceType]:
    if isinstance(resource_type, ResourceType):
        return resource_type
    try:
        return ResourceType(resource_type)
    except ValueError:
        return None


def _load(db: Session, resource_type: ResourceType, resource_id: str):
    """Fetch a live record or raise 404."""
    rid = parse_id(resource_id)
    record = None
    if rid is not None:
        record = db.get(RESOURCE_MODELS[resource_type], rid)
    if record is None or getattr(record, "deleted_at", None) is not None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return record


def _recruiter_owns(db: Session, principal_id, resource_type: ResourceType, resource_id: str) -> bool:
    if resource_type == ResourceType.APPLICATION:
        application = _load(db, resource_type, resource_id)
        job = application.job
        return (job is not None and job.user_id == principal_id) or application.recruiter_id == principal_id
    if resource_type == ResourceType.JOB:
        job = _load(db, resource_type, resource_id)
        return job.user_id == principal_id
    return False


def _user_owns(
    db: Session,
    principal_id,
    resource_type: ResourceType,
    resource_id: str,
    check_both_user_and_recruiter: bool
) -> bool:
    if resource_type == ResourceType.USER:
        return principal_id is not None and parse_id(resource_id) == principal_id

    record = _load(db, resource_type, resource_id)
    if record.user_id == principal_id:
        return True
    if resource_type == ResourceType.APPLICATION and check_both_user_and_recruiter:
        return record.recruiter_id is not None and record.recruiter_id == principal_id
    return False


def check_ownership(
    db: Session,
    principal: Optional[Principal],
    resource_type: Union[ResourceType, str],
    resource_id: Optional[str],
    check_both_user_and_recruiter: bool = False
) -> None:
    """
    Allow the request only if the principal may access the given resource.

    Args:
        db: Database session
        principal: Authenticated caller (None if the auth gate did not run)
        resource_type: Kind of resource addressed by the route
        resource_id: Identifier taken from the route path
        check_both_user_and_recruiter: For applications, also accept the
            assigned interview recruiter as an owner

    Raises:
        HTTPException 400: No resource id
        HTTPException 401: No principal
        HTTPException 403: Not the owner, or unknown resource type
        HTTPException 404: The record does not exist
        HTTPException 500: The lookup itself failed
    """
    if not resource_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resource ID is required")

    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    if principal.role == UserRole.ADMIN.value:
        return

    rtype = _resolve_type(resource_type)
    if rtype is None:
        logger.warning(f"Ownership check requested for unknown resource type: {resource_type}")
        raise _forbidden()

    principal_id = parse_id(principal.id)

    try:
        if principal.role == UserRole.RECRUITER.value:
            if _recruiter_owns(db, principal_id, rtype, resource_id):
                return

        if _user_owns(db, principal_id, rtype, resource_id, check_both_user_and_recruiter):
            return
    except SQLAlchemyError as e:
        log_error(
            logger,
            e,
            "Error checking resource ownership",
            {"resource_type": rtype.value, "resource_id": resource_id, "user_id": principal.id}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while checking permissions"
        )

    raise _forbidden()
