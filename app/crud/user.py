"""
CRUD operations for the User model acting as the credential store.

Token version increments are single UPDATE statements so that concurrent
rotations for the same user serialize in the database rather than in Python.
"""

import uuid
from datetime import datetime
from typing import Optional, Union
from sqlalchemy import update
from sqlalchemy.orm import Session
from app.models.user import JobType, User, UserRole


def parse_id(value: Union[str, uuid.UUID, None]) -> Optional[uuid.UUID]:
    """
    Convert an identifier from a token or URL into a UUID.

    Returns None for values that are not valid UUIDs so callers can treat
    them as "not found".
    """
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def get_by_id(db: Session, user_id: Union[str, uuid.UUID], include_deleted: bool = False) -> Optional[User]:
    """
    Retrieve a user by ID.

    Args:
        db: Database session
        user_id: User ID (UUID or its string form)
        include_deleted: Also return soft-deleted users

    Returns:
        User instance if found, None otherwise
    """
    uid = parse_id(user_id)
    if uid is None:
        return None

    query = db.query(User).filter(User.id == uid)
    if not include_deleted:
        query = query.filter(User.deleted_at.is_(None))
    return query.first()


def get_by_email(db: Session, email: str) -> Optional[User]:
    """Retrieve an active (non-deleted) user by email."""
    return db.query(User).filter(User.email == email, User.deleted_at.is_(None)).first()


def increment_token_version(
    db: Session,
    user_id: Union[str, uuid.UUID],
    expected_version: Optional[int] = None
) -> Optional[int]:
    """
    Atomically increment a user's token_version.

    Args:
        db: Database session
        user_id: User ID
        expected_version: When given, only increment if the stored version
            still equals this value (compare-and-increment)

    Returns:
        The new token_version, or None if no row matched (unknown user,
        deleted user, or a lost compare-and-increment race)
    """
    uid = parse_id(user_id)
    if uid is None:
        return None

    stmt = (
        update(User)
        .where(User.id == uid, User.deleted_at.is_(None))
        .values(token_version=User.token_version + 1)
        .execution_options(synchronize_session=False)
    )
    if expected_version is not None:
        stmt = stmt.where(User.token_version == expected_version)

    result = db.execute(stmt)
    db.commit()

    if result.rowcount == 0:
        return None

    return db.query(User.token_version).filter(User.id == uid).scalar()


def update_last_active(db: Session, user_id: Union[str, uuid.UUID], timestamp: datetime) -> bool:
    """
    Stamp last_active_at for a user.

    Returns:
        True if a row was updated, False if the user does not exist
    """
    uid = parse_id(user_id)
    if uid is None:
        return False

    result = db.execute(
        update(User)
        .where(User.id == uid)
        .values(last_active_at=timestamp)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount > 0


def email_taken(db: Session, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    """Whether any account, including soft-deleted ones, already uses this email."""
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def create(
    db: Session,
    email: str,
    hashed_password: str,
    role: UserRole = UserRole.DEVELOPER,
    name: Optional[str] = None,
    location: Optional[str] = None,
    preferred_job_type: Optional[JobType] = None
) -> User:
    """
    Create a new user in the database.

    Returns:
        Created User instance with id
    """
    db_user = User(
        email=email,
        hashed_password=hashed_password,
        role=role,
        name=name,
        location=location,
        preferred_job_type=preferred_job_type,
        token_version=0,
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    return db_user


def get_by_reset_token(db: Session, reset_token: str) -> Optional[User]:
    return db.query(User).filter(User.reset_token == reset_token, User.deleted_at.is_(None)).first()
