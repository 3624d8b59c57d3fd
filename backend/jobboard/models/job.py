from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from jobboard.core.security import utcnow
from jobboard.db.base import Base

JOB_TYPES = ("full-time", "part-time", "contract", "internship", "remote")
EXPERIENCE_LEVELS = ("entry", "mid", "senior", "lead")
JOB_STATUSES = ("active", "paused", "closed")


class Job(Base):
    """
    Job posting owned by exactly one employer.

    ``company_name`` is copied from the employer when the job is created.
    ``salary`` is the display string; ``salary_min``/``salary_max`` hold the
    numeric range used by salary filters.
    """

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    company_name = Column(String, nullable=False)
    salary = Column(String, nullable=False)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    location = Column(String, nullable=False)
    job_type = Column(String, index=True, nullable=False)
    skills_required = Column(JSON, default=list)  # ordered, free text
    experience = Column(String, nullable=False)
    experience_level = Column(String, index=True, nullable=True)
    application_deadline = Column(Date, nullable=True)
    status = Column(String, default="active", index=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    employer = relationship("User", back_populates="jobs")
    applications = relationship(
        "Application",
        back_populates="job",
        cascade="all, delete-orphan",
    )
