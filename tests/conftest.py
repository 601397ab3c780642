"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client with fresh services per test (token service, rate
  limiter backed by an in-process counter, recording reset notifier)
- User, skill, job and application factories
- Login and CSRF helpers
"""

import os

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URI"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JSON_LOGS"] = "false"
os.environ["REVOCATION_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "true"

import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base, get_db
from app.core.rate_limiter import RateLimiter
from app.core.revocation import MemoryRevocationStore
from app.core.security import get_password_hash
from app.models.application import Application
from app.models.job import Job, JobSkill
from app.models.skill import Skill, UserSkill
from app.models.user import JobType, User, UserRole
from app.services.password_reset import PasswordResetNotifier
from app.services.sorting_service import SortingService
from app.services.token_service import TokenService
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "TestPass123!"


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    Tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


class CounterRedis:
    """Stand-in for the Redis commands the rate limiter uses. TTLs never elapse."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    def get(self, key):
        value = self.values.get(key)
        return None if value is None else str(value)

    def setex(self, key, ttl, value):
        self.values[key] = int(value)
        self.ttls[key] = ttl

    def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def ttl(self, key):
        return self.ttls.get(key, -2)

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.values.pop(key, None) is not None else 0


class RecordingResetNotifier(PasswordResetNotifier):
    """Keeps every reset email instead of sending it."""

    def __init__(self, succeed=True):
        self.sent = []
        self.succeed = succeed

    def send_password_reset_email(self, to_email, reset_token, user_name=None):
        self.sent.append({"to_email": to_email, "reset_token": reset_token, "user_name": user_name})
        return self.succeed


@pytest.fixture
def revocation_store():
    return MemoryRevocationStore()


@pytest.fixture
def token_service(revocation_store):
    return TokenService(revocation_store, settings)


@pytest.fixture
def rate_limit_redis():
    return CounterRedis()


@pytest.fixture
def reset_notifier():
    return RecordingResetNotifier()


@pytest.fixture
def client(db_session, token_service, rate_limit_redis, reset_notifier):
    """
    FastAPI test client with overridden database dependency and services.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        # Startup has run; swap in per-test services
        app.state.token_service = token_service
        app.state.sorting_service = SortingService()
        app.state.rate_limiter = RateLimiter(client=rate_limit_redis)
        app.state.reset_notifier = reset_notifier
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory creating users. Users are marked active now unless told otherwise."""
    def _make_user(
        email=None,
        role=UserRole.DEVELOPER,
        password=DEFAULT_PASSWORD,
        location=None,
        preferred_job_type=None,
        last_active_at="now",
        skills=None,
        created_at=None,
    ):
        user = User(
            id=uuid.uuid4(),
            email=email or f"user_{uuid.uuid4().hex[:8]}@example.com",
            hashed_password=get_password_hash(password),
            role=role,
            location=location,
            preferred_job_type=preferred_job_type,
            token_version=0,
            last_active_at=datetime.now(timezone.utc) if last_active_at == "now" else last_active_at,
        )
        if created_at is not None:
            user.created_at = created_at
        db_session.add(user)
        db_session.flush()
        for skill, level in (skills or []):
            db_session.add(UserSkill(user_id=user.id, skill_id=skill.id, level=level))
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_skill(db_session):
    def _make_skill(name):
        skill = Skill(id=uuid.uuid4(), name=name)
        db_session.add(skill)
        db_session.commit()
        return skill

    return _make_skill


@pytest.fixture
def make_job(db_session):
    """Factory creating jobs with required skills given as (skill, level) pairs."""
    def _make_job(
        creator,
        title="Backend Engineer",
        location=None,
        type=JobType.FULL_TIME,
        skills=None,
        salary_max=None,
        created_at=None,
        expires_at=None,
        deleted_at=None,
    ):
        job = Job(
            id=uuid.uuid4(),
            user_id=creator.id,
            title=title,
            description=f"{title} position",
            location=location,
            type=type,
            salary_max=salary_max,
            expires_at=expires_at,
            deleted_at=deleted_at,
        )
        if created_at is not None:
            job.created_at = created_at
        db_session.add(job)
        db_session.flush()
        for skill, level in (skills or []):
            db_session.add(JobSkill(job_id=job.id, skill_id=skill.id, level=level))
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make_job


@pytest.fixture
def make_application(db_session):
    def _make_application(applicant, job, recruiter=None, skill_match_score=None, created_at=None):
        application = Application(
            id=uuid.uuid4(),
            user_id=applicant.id,
            job_id=job.id,
            recruiter_id=recruiter.id if recruiter else None,
            skill_match_score=skill_match_score,
        )
        if created_at is not None:
            application.created_at = created_at
        db_session.add(application)
        db_session.commit()
        db_session.refresh(application)
        return application

    return _make_application


@pytest.fixture
def auth_headers(db_session, token_service):
    """Bearer headers for a user, built without going through /login."""
    def _auth_headers(user):
        pair = token_service.generate_token_pair(db_session, user.id, user.role, user.email)
        return {"Authorization": f"Bearer {pair.access_token}"}

    return _auth_headers


@pytest.fixture
def login(client):
    """Log a user in through the API; cookies land in the client's jar."""
    def _login(email, password=DEFAULT_PASSWORD):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response

    return _login


@pytest.fixture
def csrf_headers(client):
    """Echo the CSRF cookie back as a header."""
    def _csrf_headers():
        return {"X-CSRF-Token": client.cookies.get(settings.CSRF_COOKIE_NAME)}

    return _csrf_headers


@pytest.fixture
def replace_cookie(client):
    """Overwrite a cookie in the client's jar (the jar would otherwise keep both)."""
    def _replace_cookie(name, value):
        client.cookies.delete(name)
        client.cookies.set(name, value)

    return _replace_cookie
