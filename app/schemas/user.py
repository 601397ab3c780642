"""
Pydantic schemas for user accounts and profile updates.
"""

from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator
from typing import Optional
from datetime import datetime
import re

from app.models.user import JobType, UserRole


def validate_password_strength(v: str) -> str:
    """Validate password contains required character types."""
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if len(v.encode('utf-8')) > 72:
        raise ValueError('Password cannot exceed 72 bytes (bcrypt limitation)')
    if not re.search(r'[a-z]', v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not re.search(r'[A-Z]', v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not re.search(r'\d', v):
        raise ValueError('Password must contain at least one number')
    if not re.search(r'[!@#$%^&*(),.?":{}|<>]', v):
        raise ValueError('Password must contain at least one special character (!@#$%^&*(),.?":{}|<>)')
    return v


class UserSummary(BaseModel):
    """Identity returned alongside tokens."""
    id: UUID4
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User profile response (no credentials or session state)."""
    id: UUID4
    email: str
    name: Optional[str] = None
    role: UserRole
    location: Optional[str] = None
    preferred_job_type: Optional[JobType] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdateRequest(BaseModel):
    """
    Profile update. email and password are critical fields: changing them
    invalidates existing refresh tokens.
    """
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=72)
    name: Optional[str] = Field(None, max_length=200)
    location: Optional[str] = Field(None, max_length=200)
    preferred_job_type: Optional[JobType] = None

    @field_validator('password')
    @classmethod
    def check_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return validate_password_strength(v)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class UserUpdateResponse(BaseModel):
    """Updated profile; carries a fresh access token when the caller changed their own credentials."""
    user: UserResponse
    access_token: Optional[str] = None
    expires_in: Optional[int] = None
