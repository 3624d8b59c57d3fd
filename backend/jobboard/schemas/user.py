from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request body accepting both the camelCase names the web client sends and snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== Requests ==============


class UserRegister(CamelModel):
    """Schema for user registration. Field rules are enforced by the accounts service."""

    username: str
    email: str
    password: str
    confirm_password: str
    role: str = "job_seeker"  # 'job_seeker' | 'employer'
    company_name: Optional[str] = None


class UserLogin(CamelModel):
    email: str
    password: str


class ForgotPasswordRequest(CamelModel):
    email: str


class ResendVerificationRequest(CamelModel):
    email: str


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str
    confirm_password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
    confirm_password: str


class ProfileUpdate(CamelModel):
    """
    Partial profile edit.

    Unknown fields are rejected, so role, email and approval cannot be
    changed through this schema.
    """

    model_config = ConfigDict(extra="forbid")

    legal_name: Optional[str] = None
    preferred_name: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone_code: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    websites: Optional[list[str]] = None
    is_adult: Optional[bool] = None

    university: Optional[str] = None
    degree: Optional[str] = None
    major: Optional[str] = None
    start_year: Optional[str] = None
    end_year: Optional[str] = None
    gpa: Optional[str] = None

    resume: Optional[str] = None
    cover_letter: Optional[str] = None
    portfolio_links: Optional[list[str]] = None

    coding_languages: Optional[list[str]] = None
    preferred_areas: Optional[list[str]] = None
    assessments: Optional[list[str]] = None
    sat_score: Optional[str] = None
    hackerrank: Optional[str] = None

    company_name: Optional[str] = None


# ============== Responses ==============


class LoginLogOut(BaseModel):
    timestamp: datetime
    ip: Optional[str] = None
    user_agent: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    """Schema for user response (without password hash or tokens)."""

    id: int
    username: str
    email: str
    role: str
    company_name: Optional[str] = None
    is_approved: bool
    email_verified: bool
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    legal_name: Optional[str] = None
    preferred_name: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone_code: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    websites: Optional[list[str]] = None
    is_adult: Optional[bool] = None
    university: Optional[str] = None
    degree: Optional[str] = None
    major: Optional[str] = None
    start_year: Optional[str] = None
    end_year: Optional[str] = None
    gpa: Optional[str] = None
    resume: Optional[str] = None
    cover_letter: Optional[str] = None
    portfolio_links: Optional[list[str]] = None
    coding_languages: Optional[list[str]] = None
    preferred_areas: Optional[list[str]] = None
    assessments: Optional[list[str]] = None
    sat_score: Optional[str] = None
    hackerrank: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserDetailOut(UserOut):
    """User as seen by itself or an admin, including login history."""

    login_logs: list[LoginLogOut] = []


class UserEnvelope(BaseModel):
    user: UserDetailOut


class RegisterResponse(BaseModel):
    message: str
    user: UserOut


class LoginResponse(BaseModel):
    message: str
    user: UserOut
    token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordResponse(BaseModel):
    message: str
    resetLink: Optional[str] = None
