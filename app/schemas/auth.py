"""
Pydantic schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from app.schemas.user import UserSummary, validate_password_strength
from app.models.user import JobType


class RegisterRequest(BaseModel):
    """Request schema for user registration. New accounts are always developers."""
    email: EmailStr
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,  # bcrypt limit
        description="Password must be 8-72 characters with uppercase, lowercase, number, and special character"
    )
    name: Optional[str] = Field(None, max_length=200)
    location: Optional[str] = Field(None, max_length=200)
    preferred_job_type: Optional[JobType] = None

    @field_validator('password')
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_strength(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Access token plus identity. The refresh token only travels in its HttpOnly cookie."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int


class CsrfTokenResponse(BaseModel):
    csrf_token: str


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8, max_length=72)

    @field_validator('new_password')
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_strength(v)
