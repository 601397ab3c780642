"""
Tests for authentication endpoints.

Tests:
- User registration
- Login and auth cookies
- Refresh token rotation through the cookie
- Logout and logout everywhere
- Password reset
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from app.core.config import settings
from app.core.exceptions import InvalidTokenError
from app.core.security import decode_refresh_token
from app.models.user import User, UserRole
from app.services.password_reset import LoggingPasswordResetNotifier


class TestUserRegistration:
    """Test user registration endpoint"""

    def test_register_success(self, client, db_session):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": "test@example.com",
                "password": "SecurePass123!",
                "name": "Test User",
                "location": "Berlin"
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "test@example.com"
        assert data["role"] == "DEVELOPER"
        assert "hashed_password" not in data

        user = db_session.query(User).filter(User.email == "test@example.com").first()
        assert user.token_version == 0

    def test_register_ignores_requested_role(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "sneaky@example.com", "password": "SecurePass123!", "role": "ADMIN"}
        )

        assert response.status_code == 201
        assert response.json()["role"] == "DEVELOPER"

    def test_register_duplicate_email(self, client, make_user):
        make_user(email="existing@example.com")

        response = client.post(
            "/api/v1/auth/register",
            json={"email": "existing@example.com", "password": "DifferentPass123!"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "CONFLICT"

    def test_register_weak_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "test@example.com", "password": "weak"}
        )

        assert response.status_code == 422

    def test_register_invalid_email(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "password": "SecurePass123!"}
        )

        assert response.status_code == 422


class TestUserLogin:
    """Test user login endpoint"""

    def test_login_success(self, client, make_user):
        user = make_user(email="test@example.com", role=UserRole.RECRUITER)

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "test@example.com", "password": "TestPass123!"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_SECONDS
        assert data["user"] == {"id": str(user.id), "email": "test@example.com", "role": "RECRUITER"}
        assert "refresh_token" not in data

    def test_login_sets_auth_cookies(self, client, make_user):
        make_user(email="test@example.com")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "test@example.com", "password": "TestPass123!"}
        )

        set_cookie = ", ".join(response.headers.get_list("set-cookie"))
        assert "refreshToken=" in set_cookie
        assert "sessionId=" in set_cookie
        assert "XSRF-TOKEN=" in set_cookie
        assert "HttpOnly" in set_cookie
        assert "Max-Age=604800" in set_cookie
        assert "SameSite=strict" in set_cookie

        refresh = client.cookies.get("refreshToken")
        assert decode_refresh_token(refresh).token_version == 0

    def test_login_records_activity(self, client, db_session, make_user):
        user = make_user(email="test@example.com", last_active_at=None)

        client.post("/api/v1/auth/login", json={"email": "test@example.com", "password": "TestPass123!"})

        db_session.refresh(user)
        assert user.last_active_at is not None

    def test_login_wrong_password(self, client, make_user):
        make_user(email="test@example.com")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "test@example.com", "password": "WrongPass123!"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_nonexistent_user_same_message(self, client):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nonexistent@example.com", "password": "TestPass123!"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_login_deleted_user(self, client, db_session, make_user):
        user = make_user(email="gone@example.com")
        user.deleted_at = datetime.now(timezone.utc)
        db_session.commit()

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "gone@example.com", "password": "TestPass123!"}
        )

        assert response.status_code == 401


class TestTokenRefresh:
    """Test refresh token rotation via cookie"""

    def test_refresh_success(self, client, make_user, login, csrf_headers):
        make_user(email="test@example.com")
        login("test@example.com")
        old_refresh = client.cookies.get("refreshToken")

        response = client.post("/api/v1/auth/refresh", headers=csrf_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["expires_in"] == 900
        new_refresh = client.cookies.get("refreshToken")
        assert new_refresh and new_refresh != old_refresh
        assert decode_refresh_token(new_refresh).token_version == 1

    def test_refresh_token_reuse_fails(self, client, make_user, login, csrf_headers, replace_cookie):
        make_user(email="test@example.com")
        login("test@example.com")
        old_refresh = client.cookies.get("refreshToken")

        assert client.post("/api/v1/auth/refresh", headers=csrf_headers()).status_code == 200

        replace_cookie("refreshToken", old_refresh)
        response = client.post("/api/v1/auth/refresh", headers=csrf_headers())

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid refresh token"

    def test_refresh_without_cookie(self, client, make_user, login, csrf_headers):
        make_user(email="test@example.com")
        login("test@example.com")
        headers = csrf_headers()
        client.cookies.delete("refreshToken")

        response = client.post("/api/v1/auth/refresh", headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "No refresh token provided"

    def test_refresh_with_garbage_cookie(self, client, make_user, login, csrf_headers, replace_cookie):
        make_user(email="test@example.com")
        login("test@example.com")
        replace_cookie("refreshToken", "garbage")

        response = client.post("/api/v1/auth/refresh", headers=csrf_headers())

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid refresh token"

    def test_refresh_requires_csrf(self, client, make_user, login):
        make_user(email="test@example.com")
        login("test@example.com")

        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 403
        assert response.json()["detail"] == "CSRF token missing"


class TestLogout:
    """Test logout endpoints"""

    def test_logout_revokes_refresh_token(self, client, make_user, login, token_service):
        make_user(email="test@example.com")
        login("test@example.com")
        refresh = client.cookies.get("refreshToken")

        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 200
        assert token_service.is_token_blacklisted(refresh)
        assert client.cookies.get("refreshToken") is None
        assert client.cookies.get("sessionId") is None

    def test_logout_without_session_is_ok(self, client):
        response = client.post("/api/v1/auth/logout")
        assert response.status_code == 200

    def test_logout_all_invalidates_every_refresh_token(
        self, client, db_session, make_user, login, csrf_headers, token_service
    ):
        user = make_user(email="test@example.com")
        other_device = token_service.generate_token_pair(db_session, user.id, user.role, user.email)
        login("test@example.com")

        response = client.post("/api/v1/auth/logout-all", headers=csrf_headers())

        assert response.status_code == 200
        db_session.refresh(user)
        assert user.token_version == 1

        client.cookies.set("refreshToken", other_device.refresh_token)
        client.cookies.set("XSRF-TOKEN", "known")
        refresh = client.post("/api/v1/auth/refresh", headers={"X-CSRF-Token": "known"})
        assert refresh.status_code == 401


class TestCsrfTokenEndpoint:
    def test_issues_cookie_and_returns_value(self, client):
        response = client.get("/api/v1/auth/csrf-token")

        assert response.status_code == 200
        token = response.json()["csrf_token"]
        assert token
        assert client.cookies.get("XSRF-TOKEN") == token


class TestMe:
    def test_me_returns_profile(self, client, make_user, login):
        user = make_user(email="me@example.com", location="Lisbon")
        login("me@example.com")

        response = client.get("/api/v1/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["location"] == "Lisbon"

    def test_me_requires_authentication(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "No token provided"


class TestPasswordReset:
    """Test forgot/reset password flow"""

    def test_forgot_password_unknown_email_same_response(self, client, make_user):
        make_user(email="known@example.com")

        known = client.post("/api/v1/auth/forgot-password", json={"email": "known@example.com"})
        unknown = client.post("/api/v1/auth/forgot-password", json={"email": "unknown@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_forgot_password_sends_token_to_user(self, client, db_session, make_user, reset_notifier):
        user = make_user(email="known@example.com")

        client.post("/api/v1/auth/forgot-password", json={"email": "known@example.com"})

        db_session.refresh(user)
        assert reset_notifier.sent == [
            {"to_email": "known@example.com", "reset_token": user.reset_token, "user_name": None}
        ]

    def test_forgot_password_unknown_email_sends_nothing(self, client, reset_notifier):
        client.post("/api/v1/auth/forgot-password", json={"email": "unknown@example.com"})

        assert reset_notifier.sent == []

    def test_forgot_password_delivery_failure_same_response(self, client, db_session, make_user, reset_notifier):
        user = make_user(email="known@example.com")
        reset_notifier.succeed = False

        response = client.post("/api/v1/auth/forgot-password", json={"email": "known@example.com"})

        assert response.status_code == 200
        assert response.json()["message"].startswith("If an account with that email exists")
        # The token stays usable; the user can ask again
        db_session.refresh(user)
        assert user.reset_token == reset_notifier.sent[0]["reset_token"]

    def test_reset_password_flow(self, client, db_session, make_user, token_service):
        user = make_user(email="reset@example.com")
        pair = token_service.generate_token_pair(db_session, user.id, user.role, user.email)

        client.post("/api/v1/auth/forgot-password", json={"email": "reset@example.com"})
        db_session.refresh(user)
        assert user.reset_token

        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": user.reset_token, "new_password": "BrandNew123!"}
        )

        assert response.status_code == 200
        login = client.post("/api/v1/auth/login", json={"email": "reset@example.com", "password": "BrandNew123!"})
        assert login.status_code == 200

        db_session.refresh(user)
        assert user.reset_token is None
        assert user.token_version == 1
        # Sessions from before the reset cannot refresh
        with pytest.raises(InvalidTokenError):
            token_service.rotate_refresh_token(db_session, pair.refresh_token)

    def test_reset_with_expired_token(self, client, db_session, make_user):
        user = make_user(email="reset@example.com")
        user.reset_token = "expired-token"
        user.reset_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()

        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": "expired-token", "new_password": "BrandNew123!"}
        )

        assert response.status_code == 400

    def test_reset_with_unknown_token(self, client):
        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": "nope", "new_password": "BrandNew123!"}
        )
        assert response.status_code == 400


class TestLoggingResetNotifier:
    """Test the fallback used when no mail provider is configured"""

    def test_logs_link_outside_production(self, caplog):
        notifier = LoggingPasswordResetNotifier(settings)

        with caplog.at_level(logging.INFO, logger="app.services.password_reset"):
            sent = notifier.send_password_reset_email("a@example.com", "tok/en+1")

        assert sent is True
        assert f"{settings.PASSWORD_RESET_URL}?token=tok%2Fen%2B1" in caplog.text

    def test_refuses_in_production(self, caplog, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        notifier = LoggingPasswordResetNotifier(settings)

        with caplog.at_level(logging.INFO, logger="app.services.password_reset"):
            sent = notifier.send_password_reset_email("a@example.com", "secret-token")

        assert sent is False
        assert "secret-token" not in caplog.text
