"""
FastAPI dependencies for authentication and authorization.

These dependencies are used to protect endpoints and extract user context.
Routes combine them in order: authentication (get_current_principal), role
check (require_roles), then ownership of the addressed record
(require_ownership).
"""

import logging
import time
from typing import Optional, Sequence, Union

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.csrf import validate_csrf
from app.core.database import get_db
from app.core.exceptions import InvalidTokenError, TokenExpiredError
from app.core.ownership import ResourceType, check_ownership
from app.core.rate_limiter import RateLimiter, get_client_ip
from app.core.security import Principal
from app.models.user import UserRole
from app.services.sorting_service import SortingService
from app.services.password_reset import PasswordResetNotifier
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme (Authorization: Bearer <token>); the session cookie wins when both are sent
security = HTTPBearer(auto_error=False)

VALID_ROLES = {role.value for role in UserRole}


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_sorting_service(request: Request) -> SortingService:
    return request.app.state.sorting_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_reset_notifier(request: Request) -> PasswordResetNotifier:
    return request.app.state.reset_notifier


def limit_auth_attempts(
    request: Request,
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """
    Throttle credential endpoints per client IP.

    Login and register draw from the same counter, so alternating between
    them does not reset the budget.

    Raises:
        HTTPException 429: Too many attempts in the current window
    """
    if not settings.RATE_LIMIT_ENABLED:
        return

    rate_limiter.check_rate_limit(
        key=f"auth:{get_client_ip(request)}",
        max_requests=settings.AUTH_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_SECONDS,
        error_message="Too many authentication attempts from this IP",
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> Principal:
    """
    Authenticate the request and return the caller.

    This dependency:
    1. Validates the CSRF header/cookie pair on state-changing requests
    2. Reads the access token from the session cookie or Bearer header
    3. Verifies signature, audience, issuer, claims and expiry
    4. Rejects users inactive for longer than INACTIVITY_TIMEOUT_DAYS
    5. Records activity and adds security headers

    Raises:
        HTTPException 403: CSRF token missing or mismatched
        HTTPException 401: Missing, invalid or expired token, or inactivity
    """
    validate_csrf(request)

    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise _unauthorized("No token provided")

    try:
        claims = token_service.verify_access_token(token)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidTokenError:
        raise _unauthorized("Invalid token")

    if claims.expires_at < time.time():
        raise _unauthorized("Token has expired")

    if settings.ENFORCE_ACCESS_TOKEN_VERSION and not token_service.is_access_token_current(db, claims):
        raise _unauthorized("Invalid token")

    if token_service.has_exceeded_inactivity_timeout(db, claims.user_id):
        raise _unauthorized("Session expired due to inactivity")

    principal = Principal(id=claims.user_id, email=claims.email, role=claims.role)
    request.state.user = principal

    token_service.check_activity(db, claims.user_id)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    return principal


def authorize(principal: Optional[Principal], allowed_roles: Sequence[Union[UserRole, str]]) -> None:
    """
    Check a principal's role against the roles a route allows.

    There is no ADMIN bypass here: routes that admins may use list ADMIN.

    Raises:
        HTTPException 401: No principal
        HTTPException 403: Empty allow-list, unknown role, or role not allowed
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. User not authenticated."
        )

    allowed = [role.value if isinstance(role, UserRole) else role for role in allowed_roles]
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. No roles are allowed."
        )

    if principal.role not in VALID_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Invalid user role."
        )

    if principal.role not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Access denied. Insufficient permissions.",
                "required_roles": allowed,
                "user_role": principal.role,
            }
        )


def require_roles(*allowed_roles: Union[UserRole, str]):
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.put("/users/{id}/role")
        def update_role(principal: Principal = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        authorize(principal, allowed_roles)
        return principal

    return role_checker


def require_ownership(
    resource_type: Union[ResourceType, str],
    check_both_user_and_recruiter: bool = False,
    id_param: str = "id",
):
    """
    Dependency factory requiring the caller to own the record named by a path parameter.

    Args:
        resource_type: Kind of record the path parameter refers to
        check_both_user_and_recruiter: For applications, also admit the assigned recruiter
        id_param: Name of the path parameter holding the record id
    """
    def ownership_checker(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> Principal:
        check_ownership(
            db,
            principal,
            resource_type,
            request.path_params.get(id_param),
            check_both_user_and_recruiter,
        )
        return principal

    return ownership_checker
