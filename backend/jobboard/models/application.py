from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.core.security import utcnow
from jobboard.db.base import Base

APPLICATION_STATUSES = ("pending", "accepted", "rejected")
TERMINAL_STATUSES = ("accepted", "rejected")


class Application(Base):
    """
    A job seeker's application to a job.

    Status moves once from ``pending`` to ``accepted`` or ``rejected``.
    """

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("job_id", "job_seeker_id", name="uq_application_job_seeker"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(
        Integer,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    job_seeker_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    status = Column(String, default="pending", index=True, nullable=False)

    applied_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    job = relationship("Job", back_populates="applications")
    job_seeker = relationship("User", back_populates="applications")
