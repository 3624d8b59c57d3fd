"""
Entity lookups and the atomic write helper shared by every manager.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.core.errors import ConflictError, InternalError, NotFoundError
from jobboard.models import Application, Job, User

logger = logging.getLogger("jobboard.entities")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_job(db: Session, job_id: int) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def get_application(db: Session, application_id: int) -> Application:
    application = db.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application


def commit(db: Session) -> None:
    """Commit, turning storage failures into an opaque InternalError."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Storage failure while committing")
        raise InternalError()


def commit_or_conflict(db: Session, message: str) -> None:
    """
    Commit an insert guarded by a unique index.

    The index performs the uniqueness check and the insert as one step, so
    two concurrent requests cannot both succeed.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(message)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Storage failure while committing")
        raise InternalError()


def unique_username(db: Session, base: str, taken: Optional[set[str]] = None) -> str:
    """``base`` lowercased, with a numeric suffix when it is short or already in use."""
    base = (base or "user").strip().lower()[:26]
    taken = taken if taken is not None else set()
    candidate, n = base, 1
    while len(candidate) < 3 or candidate in taken or db.query(User).filter(User.username == candidate).first():
        n += 1
        candidate = f"{base}{n}"
    taken.add(candidate)
    return candidate
