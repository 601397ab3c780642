"""
CSRF protection using the double-submit cookie pattern.

The XSRF-TOKEN cookie is readable by the frontend, which echoes it back in
the X-CSRF-Token (or X-XSRF-Token) header on state-changing requests.
"""

import secrets
from fastapi import HTTPException, Request, Response, status

from app.core.config import settings

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

# Auth flows that run before a CSRF cookie exists
CSRF_EXEMPT_ROUTES = tuple(
    f"{settings.API_V1_STR}/auth/{route}"
    for route in ("login", "register", "logout", "forgot-password", "reset-password")
)

CSRF_HEADER_NAMES = ("X-CSRF-Token", "X-XSRF-Token")
SKIP_CSRF_HEADER = "X-Skip-CSRF-Check"


def is_csrf_exempt(request: Request) -> bool:
    if request.method.upper() in SAFE_METHODS:
        return True
    if request.url.path.rstrip("/") in CSRF_EXEMPT_ROUTES:
        return True
    if not settings.is_production and request.headers.get(SKIP_CSRF_HEADER):
        return True
    return False


def validate_csrf(request: Request) -> None:
    """
    Check the CSRF header against the CSRF cookie.

    Raises:
        HTTPException: 403 if either value is missing or they differ
    """
    if is_csrf_exempt(request):
        return

    header_token = None
    for name in CSRF_HEADER_NAMES:
        header_token = request.headers.get(name)
        if header_token:
            break
    cookie_token = request.cookies.get(settings.CSRF_COOKIE_NAME)

    if not header_token or not cookie_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="CSRF token missing"
        )

    if not secrets.compare_digest(header_token.encode("utf-8"), cookie_token.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid CSRF token"
        )


def issue_csrf_token(response: Response) -> str:
    """Generate a CSRF token and set it as a JS-readable cookie."""
    token = secrets.token_urlsafe(32)
    response.set_cookie(
        key=settings.CSRF_COOKIE_NAME,
        value=token,
        httponly=False,
        secure=settings.is_production,
        samesite="strict",
        domain=settings.COOKIE_DOMAIN,
        path="/",
    )
    return token
