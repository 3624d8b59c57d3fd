from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from jobboard.core.security import utcnow
from jobboard.db.base import Base

ROLES = ("job_seeker", "employer", "admin")

# Job-seeker profile fields editable through the profile endpoint
PROFILE_FIELDS = (
    "legal_name",
    "preferred_name",
    "country",
    "city",
    "state",
    "zip_code",
    "phone_code",
    "phone",
    "linkedin",
    "websites",
    "is_adult",
    "university",
    "degree",
    "major",
    "start_year",
    "end_year",
    "gpa",
    "resume",
    "cover_letter",
    "portfolio_links",
    "coding_languages",
    "preferred_areas",
    "assessments",
    "sat_score",
    "hackerrank",
    "company_name",
)


class User(Base):
    """User model for authentication, authorization and the job-seeker profile."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    # Stored lowercased; the unique index makes uniqueness case-insensitive
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False)  # 'job_seeker' | 'employer' | 'admin'

    # Employer
    company_name = Column(String, nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)

    # Session / security metadata
    email_verified = Column(Boolean, default=False, nullable=False)
    verification_token_hash = Column(String, index=True, nullable=True)
    verification_token_expires = Column(DateTime, nullable=True)
    reset_token_hash = Column(String, index=True, nullable=True)
    reset_token_expires = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Job-seeker profile
    legal_name = Column(String, nullable=True)
    preferred_name = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    phone_code = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    linkedin = Column(String, nullable=True)
    websites = Column(JSON, default=list)
    is_adult = Column(Boolean, nullable=True)

    # Education
    university = Column(String, nullable=True)
    degree = Column(String, nullable=True)
    major = Column(String, nullable=True)
    start_year = Column(String, nullable=True)
    end_year = Column(String, nullable=True)
    gpa = Column(String, nullable=True)

    # Attachments are references only, no file storage
    resume = Column(String, nullable=True)
    cover_letter = Column(String, nullable=True)
    portfolio_links = Column(JSON, default=list)

    # Skills and assessments
    coding_languages = Column(JSON, default=list)
    preferred_areas = Column(JSON, default=list)
    assessments = Column(JSON, default=list)
    sat_score = Column(String, nullable=True)
    hackerrank = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    login_logs = relationship(
        "LoginLog",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="LoginLog.timestamp",
    )
    jobs = relationship("Job", back_populates="employer", cascade="all, delete-orphan")
    applications = relationship(
        "Application",
        back_populates="job_seeker",
        cascade="all, delete-orphan",
    )


class LoginLog(Base):
    """One successful login: when, from where and with which client."""

    __tablename__ = "login_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)
    ip = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)

    user = relationship("User", back_populates="login_logs")


class RevokedToken(Base):
    """Session token ``jti`` revoked by logout, kept until it would expire."""

    __tablename__ = "revoked_tokens"

    jti = Column(String, primary_key=True)
    expires_at = Column(DateTime, nullable=False, index=True)
