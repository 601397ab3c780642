"""
Authentication endpoints for registration, login, logout and token refresh.

Implements cookie + JWT authentication:
- POST /register: Create new developer account
- POST /login: Authenticate, receive an access token and auth cookies
- POST /logout: Revoke the refresh token and clear cookies
- POST /refresh: Rotate the refresh token (one-time use)
- GET /csrf-token: Issue a fresh CSRF cookie
- GET /me: Get current user profile
- POST /logout-all: Invalidate every refresh token of the caller
- POST /forgot-password, /reset-password: Password reset by token
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.cookies import clear_auth_cookies, clear_refresh_cookie, set_auth_cookies
from app.core.csrf import issue_csrf_token, validate_csrf
from app.core.database import get_db
from app.core.deps import get_current_principal, get_reset_notifier, get_token_service, limit_auth_attempts
from app.core.exceptions import AppError, AuthenticationError, ConflictError, NotFoundError
from app.core.logging_config import log_error
from app.core.security import Principal, get_password_hash, verify_password
from app.crud import user as crud_user
from app.models.user import UserRole
from app.schemas.auth import (
    CsrfTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.schemas.user import UserResponse, UserSummary
from app.services.password_reset import PasswordResetNotifier
from app.services.token_service import TokenService, as_utc

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserResponse,
    dependencies=[Depends(limit_auth_attempts)],
)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new user account.

    Every self-registered account is a DEVELOPER; roles are granted by admins.
    Counts against the per-IP authentication rate limit.
    """
    if crud_user.email_taken(db, request.email):
        raise ConflictError("Email already registered")

    new_user = crud_user.create(
        db,
        email=request.email,
        hashed_password=get_password_hash(request.password),
        role=UserRole.DEVELOPER,
        name=request.name,
        location=request.location,
        preferred_job_type=request.preferred_job_type,
    )

    logger.info(f"New user registered: {new_user.email}")
    return new_user


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(limit_auth_attempts)])
def login(
    request: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Authenticate user and return an access token.

    Sets the refreshToken and sessionId cookies (HttpOnly) and the
    XSRF-TOKEN cookie the client must echo on state-changing requests.
    The same 401 is returned whether the email or the password was wrong.
    Attempts are rate limited per client IP (429 once exhausted).
    """
    user = crud_user.get_by_email(db, request.email)
    if not user or not verify_password(request.password, user.hashed_password):
        log_error(
            logger,
            AuthenticationError("Invalid credentials"),
            "Login failed",
            {"email": request.email, "user_found": user is not None},
            level=logging.WARNING,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    pair = token_service.generate_token_pair(db, user.id, user.role, user.email)
    set_auth_cookies(response, pair.access_token, pair.refresh_token)
    issue_csrf_token(response)

    token_service.check_activity(db, user.id)

    logger.info(f"User logged in: {user.email}")

    return LoginResponse(
        access_token=pair.access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        user=UserSummary.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    token_service: TokenService = Depends(get_token_service)
):
    """
    Log out the current browser session.

    Revokes the presented refresh token (if any) and clears auth cookies.
    Works without a valid access token so expired sessions can still log out.
    """
    refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if refresh_token:
        token_service.blacklist_token(refresh_token)

    clear_auth_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=RefreshResponse)
def refresh_token(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Rotate the refresh token from the refreshToken cookie.

    The presented token is consumed: reusing it afterwards fails. Any
    rotation failure is reported with the same generic message.
    """
    validate_csrf(request)

    old_refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if not old_refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No refresh token provided"
        )

    try:
        pair = token_service.rotate_refresh_token(db, old_refresh_token)
    except AppError as e:
        log_error(logger, e, "Refresh token rotation failed", level=logging.WARNING)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    clear_refresh_cookie(response)
    set_auth_cookies(response, pair.access_token, pair.refresh_token)

    return RefreshResponse(
        access_token=pair.access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
    )


@router.get("/csrf-token", response_model=CsrfTokenResponse)
def get_csrf_token(response: Response):
    """Issue a new CSRF token cookie and return its value."""
    return CsrfTokenResponse(csrf_token=issue_csrf_token(response))


@router.get("/me", response_model=UserResponse)
def get_current_user_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated user's profile.

    Requires a session cookie or Bearer token.
    """
    user = crud_user.get_by_id(db, principal.id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.post("/logout-all", response_model=MessageResponse)
def logout_all_sessions(
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Log out everywhere.

    Bumps the caller's token_version so every refresh token issued so far
    stops working. Access tokens already issued live until they expire.
    """
    token_service.invalidate_all_user_tokens(db, principal.id)
    clear_auth_cookies(response)
    logger.info(f"User logged out of all sessions: {principal.email}")
    return MessageResponse(message="Logged out of all sessions")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    notifier: PasswordResetNotifier = Depends(get_reset_notifier)
):
    """
    Create a password reset token valid for one hour and send it to the user.

    Always returns the same message to prevent email enumeration, including
    when delivery fails (the user can simply ask again).
    """
    success_message = MessageResponse(
        message="If an account with that email exists, a password reset link has been sent."
    )

    user = crud_user.get_by_email(db, request.email)
    if not user:
        logger.info("Password reset requested for unknown email")
        return success_message

    reset_token = secrets.token_urlsafe(32)
    user.reset_token = reset_token
    user.reset_token_expires_at = datetime.now(timezone.utc) + RESET_TOKEN_TTL
    db.commit()

    logger.info(f"Password reset token issued for user: {user.id}")

    email_sent = notifier.send_password_reset_email(
        to_email=user.email,
        reset_token=reset_token,
        user_name=user.name
    )
    if email_sent:
        logger.info(f"Password reset email sent for user: {user.id}")
    else:
        logger.error(f"Failed to send password reset email for user: {user.id}")

    return success_message


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Reset password using reset token.

    A successful reset also invalidates every refresh token of the account.
    """
    user = crud_user.get_by_reset_token(db, request.token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    expires_at = as_utc(user.reset_token_expires_at)
    if not expires_at or expires_at < datetime.now(timezone.utc):
        user.reset_token = None
        user.reset_token_expires_at = None
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset token has expired. Please request a new password reset."
        )

    user.hashed_password = get_password_hash(request.new_password)
    user.reset_token = None
    user.reset_token_expires_at = None
    db.commit()

    token_service.invalidate_all_user_tokens(db, user.id)
    logger.info(f"Password successfully reset for user: {user.id}")

    return MessageResponse(
        message="Password has been reset successfully. You can now login with your new password."
    )
