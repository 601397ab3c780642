"""
Application endpoints.

Applications are visible to the applicant, the recruiter who owns the job,
the recruiter assigned to the interview, and admins.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_ownership
from app.core.exceptions import NotFoundError
from app.core.ownership import ResourceType
from app.core.security import Principal
from app.crud.user import parse_id
from app.models.application import Application
from app.schemas.sorting import ApplicationListItem

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("/{id}", response_model=ApplicationListItem)
def get_application(
    id: str,
    principal: Principal = Depends(require_ownership(ResourceType.APPLICATION, check_both_user_and_recruiter=True)),
    db: Session = Depends(get_db)
):
    application_id = parse_id(id)
    application = db.get(Application, application_id) if application_id else None
    if not application or application.deleted_at is not None:
        raise NotFoundError("Application not found")
    return application
