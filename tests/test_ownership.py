"""
Tests for per-resource ownership checks.

Tests:
- Admin bypass
- Recruiter access to their jobs and applications on them
- Owner access for user-scoped records
- 400/401/403/404/500 outcomes
- Route-level guard on application lookups
"""

import logging
import uuid
from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.core.ownership import ResourceType, check_ownership
from app.core.security import Principal
from app.models.document import Document
from app.models.notification import Notification
from app.models.saved_job import SavedJob
from app.models.skill import SkillLevel, UserSkill
from app.models.user import UserRole


def _as_principal(user):
    role = user.role.value if isinstance(user.role, UserRole) else user.role
    return Principal(id=str(user.id), email=user.email, role=role)


def _status(db_session, principal, resource_type, resource_id, **kwargs):
    """Return 200 when access is granted, otherwise the raised status code."""
    try:
        check_ownership(db_session, principal, resource_type, resource_id, **kwargs)
    except HTTPException as exc:
        return exc.status_code
    return 200


@pytest.fixture
def world(db_session, make_user, make_job, make_application):
    """Two developers, two recruiters, an admin, a job and an application on it."""
    recruiter = make_user(role=UserRole.RECRUITER)
    other_recruiter = make_user(role=UserRole.RECRUITER)
    interviewer = make_user(role=UserRole.RECRUITER)
    applicant = make_user()
    stranger = make_user()
    admin = make_user(role=UserRole.ADMIN)
    job = make_job(recruiter)
    application = make_application(applicant, job, recruiter=interviewer)
    return {
        "recruiter": recruiter,
        "other_recruiter": other_recruiter,
        "interviewer": interviewer,
        "applicant": applicant,
        "stranger": stranger,
        "admin": admin,
        "job": job,
        "application": application,
    }


class TestPreconditions:
    def test_missing_resource_id(self, db_session, world):
        with pytest.raises(HTTPException) as exc:
            check_ownership(db_session, _as_principal(world["applicant"]), ResourceType.JOB, None)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Resource ID is required"

    def test_missing_principal(self, db_session, world):
        with pytest.raises(HTTPException) as exc:
            check_ownership(db_session, None, ResourceType.JOB, str(world["job"].id))
        assert exc.value.status_code == 401
        assert exc.value.detail == "Authentication required"

    def test_admin_bypasses_everything(self, db_session, world):
        admin = _as_principal(world["admin"])
        assert _status(db_session, admin, ResourceType.JOB, str(world["job"].id)) == 200
        assert _status(db_session, admin, ResourceType.USER, str(world["stranger"].id)) == 200
        assert _status(db_session, admin, "spaceship", "anything") == 200

    def test_unknown_resource_type_is_forbidden_and_logged(self, db_session, world, caplog):
        with caplog.at_level(logging.WARNING, logger="app.core.ownership"):
            status = _status(db_session, _as_principal(world["applicant"]), "spaceship", "anything")
        assert status == 403
        assert "spaceship" in caplog.text

    def test_string_resource_type(self, db_session, world):
        principal = _as_principal(world["recruiter"])
        assert _status(db_session, principal, "job", str(world["job"].id)) == 200


class TestRecruiterAccess:
    def test_creator_owns_job(self, db_session, world):
        assert _status(db_session, _as_principal(world["recruiter"]), ResourceType.JOB, str(world["job"].id)) == 200

    def test_other_recruiter_does_not_own_job(self, db_session, world):
        principal = _as_principal(world["other_recruiter"])
        assert _status(db_session, principal, ResourceType.JOB, str(world["job"].id)) == 403

    def test_job_owner_sees_applications(self, db_session, world):
        principal = _as_principal(world["recruiter"])
        assert _status(db_session, principal, ResourceType.APPLICATION, str(world["application"].id)) == 200

    def test_assigned_interviewer_sees_application(self, db_session, world):
        principal = _as_principal(world["interviewer"])
        assert _status(db_session, principal, ResourceType.APPLICATION, str(world["application"].id)) == 200

    def test_unrelated_recruiter_cannot_see_application(self, db_session, world):
        principal = _as_principal(world["other_recruiter"])
        assert _status(db_session, principal, ResourceType.APPLICATION, str(world["application"].id)) == 403


class TestOwnerAccess:
    def test_user_accesses_self(self, db_session, world):
        applicant = world["applicant"]
        assert _status(db_session, _as_principal(applicant), ResourceType.USER, str(applicant.id)) == 200

    def test_user_cannot_access_other_user(self, db_session, world):
        principal = _as_principal(world["applicant"])
        assert _status(db_session, principal, ResourceType.USER, str(world["stranger"].id)) == 403

    def test_user_with_unknown_id_is_forbidden(self, db_session, world):
        principal = _as_principal(world["applicant"])
        assert _status(db_session, principal, ResourceType.USER, str(uuid.uuid4())) == 403

    def test_applicant_owns_application(self, db_session, world):
        principal = _as_principal(world["applicant"])
        assert _status(db_session, principal, ResourceType.APPLICATION, str(world["application"].id)) == 200

    def test_stranger_cannot_see_application(self, db_session, world):
        principal = _as_principal(world["stranger"])
        assert _status(db_session, principal, ResourceType.APPLICATION, str(world["application"].id)) == 403

    def test_developer_cannot_own_job_they_did_not_create(self, db_session, world):
        principal = _as_principal(world["applicant"])
        assert _status(db_session, principal, ResourceType.JOB, str(world["job"].id)) == 403

    def test_check_both_admits_interviewer_of_non_recruiter_role(self, db_session, make_user, make_job, make_application):
        # A developer assigned as interviewer only gets in when both sides are checked
        owner = make_user(role=UserRole.RECRUITER)
        applicant = make_user()
        helper = make_user()
        application = make_application(applicant, make_job(owner), recruiter=helper)
        principal = _as_principal(helper)

        assert _status(db_session, principal, ResourceType.APPLICATION, str(application.id)) == 403
        assert _status(
            db_session, principal, ResourceType.APPLICATION, str(application.id),
            check_both_user_and_recruiter=True,
        ) == 200

    @pytest.mark.parametrize(
        "resource_type, factory",
        [
            (ResourceType.DOCUMENT, lambda user, job: Document(user_id=user.id, name="cv.pdf", file_path="/cv.pdf")),
            (ResourceType.NOTIFICATION, lambda user, job: Notification(user_id=user.id, message="hi")),
            (ResourceType.SAVED_JOB, lambda user, job: SavedJob(user_id=user.id, job_id=job.id)),
        ],
    )
    def test_user_scoped_records(self, db_session, world, resource_type, factory):
        record = factory(world["applicant"], world["job"])
        db_session.add(record)
        db_session.commit()

        assert _status(db_session, _as_principal(world["applicant"]), resource_type, str(record.id)) == 200
        assert _status(db_session, _as_principal(world["stranger"]), resource_type, str(record.id)) == 403

    def test_user_skill(self, db_session, world, make_skill):
        skill = make_skill("Python")
        user_skill = UserSkill(user_id=world["applicant"].id, skill_id=skill.id, level=SkillLevel.EXPERT)
        db_session.add(user_skill)
        db_session.commit()

        assert _status(db_session, _as_principal(world["applicant"]), ResourceType.USER_SKILL, str(user_skill.id)) == 200
        assert _status(db_session, _as_principal(world["stranger"]), ResourceType.USER_SKILL, str(user_skill.id)) == 403


class TestMissingRecords:
    def test_unknown_job_is_not_found(self, db_session, world):
        principal = _as_principal(world["recruiter"])
        assert _status(db_session, principal, ResourceType.JOB, str(uuid.uuid4())) == 404

    def test_malformed_id_is_not_found(self, db_session, world):
        principal = _as_principal(world["applicant"])
        assert _status(db_session, principal, ResourceType.APPLICATION, "not-a-uuid") == 404

    def test_soft_deleted_job_is_not_found(self, db_session, world, make_job):
        job = make_job(world["recruiter"], deleted_at=datetime.now(timezone.utc))
        principal = _as_principal(world["recruiter"])
        assert _status(db_session, principal, ResourceType.JOB, str(job.id)) == 404


class TestLookupFailure:
    def test_database_error_is_500(self, db_session, world, monkeypatch):
        def broken_get(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(db_session, "get", broken_get)

        with pytest.raises(HTTPException) as exc:
            check_ownership(db_session, _as_principal(world["recruiter"]), ResourceType.JOB, str(world["job"].id))
        assert exc.value.status_code == 500
        assert exc.value.detail == "An error occurred while checking permissions"


class TestApplicationRoute:
    """Test the ownership guard wired into GET /applications/{id}"""

    def test_applicant_can_read(self, client, world, auth_headers):
        response = client.get(f"/api/v1/applications/{world['application'].id}", headers=auth_headers(world["applicant"]))
        assert response.status_code == 200
        assert response.json()["id"] == str(world["application"].id)

    def test_interviewer_can_read(self, client, world, auth_headers):
        response = client.get(
            f"/api/v1/applications/{world['application'].id}", headers=auth_headers(world["interviewer"])
        )
        assert response.status_code == 200

    def test_stranger_is_forbidden(self, client, world, auth_headers):
        response = client.get(f"/api/v1/applications/{world['application'].id}", headers=auth_headers(world["stranger"]))
        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have permission to access this resource"

    def test_unknown_application_is_not_found(self, client, world, auth_headers):
        response = client.get(f"/api/v1/applications/{uuid.uuid4()}", headers=auth_headers(world["applicant"]))
        assert response.status_code == 404
