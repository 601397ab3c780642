"""
User account endpoints.

- GET /users/{id}: Profile (self or admin)
- PUT /users/{id}: Update profile (self or admin)
- PUT /users/{id}/role: Change role (admin only)
- POST /users/{id}/revoke-sessions: Force logout (admin only)

Changing an account's email, password or role invalidates its refresh
tokens. When users change their own credentials they get a fresh token
pair in the same response.
"""

import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.cookies import clear_refresh_cookie, set_auth_cookies
from app.core.database import get_db
from app.core.deps import get_token_service, require_ownership, require_roles
from app.core.exceptions import ConflictError, NotFoundError
from app.core.ownership import ResourceType
from app.core.security import Principal, get_password_hash
from app.crud import user as crud_user
from app.models.user import UserRole
from app.schemas.auth import MessageResponse
from app.schemas.user import RoleUpdateRequest, UserResponse, UserUpdateRequest, UserUpdateResponse
from app.services.token_service import TokenService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: str):
    user = crud_user.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/{id}", response_model=UserResponse)
def get_user(
    id: str,
    principal: Principal = Depends(require_ownership(ResourceType.USER)),
    db: Session = Depends(get_db)
):
    return _get_user_or_404(db, id)


@router.put("/{id}", response_model=UserUpdateResponse)
def update_user(
    id: str,
    payload: UserUpdateRequest,
    request: Request,
    response: Response,
    principal: Principal = Depends(require_ownership(ResourceType.USER)),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Update a user's profile.

    Self-updates of email or password revoke the presented refresh token,
    invalidate all others, and return a new access token with new cookies.
    Admin updates of another user's email or password only invalidate that
    user's tokens.
    """
    user = _get_user_or_404(db, id)

    email_changed = payload.email is not None and payload.email != user.email
    if email_changed and crud_user.email_taken(db, payload.email, exclude_id=user.id):
        raise ConflictError("Email already in use by another account")

    critical_change = email_changed or payload.password is not None

    if email_changed:
        user.email = payload.email
    if payload.password is not None:
        user.hashed_password = get_password_hash(payload.password)
    for field in ("name", "location", "preferred_job_type"):
        value = getattr(payload, field)
        if value is not None:
            setattr(user, field, value)

    db.commit()
    db.refresh(user)

    if not critical_change:
        return UserUpdateResponse(user=UserResponse.model_validate(user))

    token_service.invalidate_all_user_tokens(db, user.id)

    if principal.id != str(user.id):
        logger.info(f"Admin {principal.id} changed credentials of user {user.id}")
        return UserUpdateResponse(user=UserResponse.model_validate(user))

    presented = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if presented:
        token_service.blacklist_token(presented)

    pair = token_service.generate_token_pair(db, user.id, user.role, user.email)
    clear_refresh_cookie(response)
    set_auth_cookies(response, pair.access_token, pair.refresh_token)

    return UserUpdateResponse(
        user=UserResponse.model_validate(user),
        access_token=pair.access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )


@router.put("/{id}/role", response_model=UserResponse)
def update_user_role(
    id: str,
    payload: RoleUpdateRequest,
    principal: Principal = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """Change a user's role. Tokens carrying the old role stop refreshing."""
    user = _get_user_or_404(db, id)

    if user.role != payload.role:
        user.role = payload.role
        db.commit()
        token_service.invalidate_all_user_tokens(db, user.id)
        logger.info(f"Role of user {user.id} changed to {payload.role.value} by {principal.id}")

    db.refresh(user)
    return user


@router.post("/{id}/revoke-sessions", response_model=MessageResponse)
def revoke_user_sessions(
    id: str,
    principal: Principal = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """Force logout: invalidate every refresh token of a user."""
    user = _get_user_or_404(db, id)
    token_service.invalidate_all_user_tokens(db, user.id)
    logger.warning(f"Sessions of user {user.id} revoked by admin {principal.id}")
    return MessageResponse(message="All sessions revoked")
