"""
Auth cookie helpers.

refreshToken and sessionId are HttpOnly, SameSite=strict and Secure in
production. The refresh cookie lives as long as the refresh token; the
session cookie as long as the access token it holds.
"""

from fastapi import Response

from app.core.config import settings


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict",
        "domain": settings.COOKIE_DOMAIN,
        "path": "/",
    }


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        **_cookie_options()
    )


def set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        **_cookie_options()
    )


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    set_refresh_cookie(response, refresh_token)
    set_session_cookie(response, access_token)


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.REFRESH_COOKIE_NAME, **_cookie_options())


def clear_auth_cookies(response: Response) -> None:
    clear_refresh_cookie(response)
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, **_cookie_options())
    response.delete_cookie(
        key=settings.CSRF_COOKIE_NAME,
        secure=settings.is_production,
        samesite="strict",
        domain=settings.COOKIE_DOMAIN,
        path="/",
    )
