"""
Application lifecycle manager.

A job seeker applies once per job; the owning employer (or an admin) moves
the application from ``pending`` to ``accepted`` or ``rejected`` exactly once.
"""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from jobboard.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from jobboard.core.security import utcnow
from jobboard.models import Application, Job, User
from jobboard.models.application import TERMINAL_STATUSES
from jobboard.services.entities import commit, commit_or_conflict
from jobboard.services.entities import get_application as load_application
from jobboard.services.entities import get_job as load_job
from jobboard.services.policy import Action, AdminView, EmployerView, authorize, resolve_view

logger = logging.getLogger("jobboard.applications")

# Profile fields a job seeker must fill in before applying
REQUIRED_PROFILE_FIELDS = {
    "legal_name": "Legal name is required to apply",
    "phone": "Phone number is required to apply",
}


def missing_profile_fields(seeker: User) -> dict[str, str]:
    return {
        field: message
        for field, message in REQUIRED_PROFILE_FIELDS.items()
        if not (getattr(seeker, field) or "").strip()
    }


def apply(db: Session, seeker: User, job_id: int) -> Application:
    """
    Apply to an active job.

    Raises:
        AuthorizationError: the actor is not a job seeker
        NotFoundError: the job does not exist or is not accepting applications
        ValidationError: incomplete profile or deadline passed
        ConflictError: the seeker already applied to this job
    """
    authorize(seeker, Action.APPLY)

    job = load_job(db, job_id)
    if job.status != "active":
        raise NotFoundError("Job not found")

    missing = missing_profile_fields(seeker)
    if missing:
        raise ValidationError(missing, message="Please complete your profile before applying")
    if job.application_deadline is not None and job.application_deadline < utcnow().date():
        raise ValidationError({"application_deadline": "The application deadline has passed"})

    application = Application(
        job_id=job.id,
        job_seeker_id=seeker.id,
        status="pending",
        applied_at=utcnow(),
    )
    db.add(application)
    # Unique (job_id, job_seeker_id) index makes check-and-insert one step
    commit_or_conflict(db, "You have already applied to this job")
    db.refresh(application)

    logger.info("Job seeker id=%s applied to job id=%s", seeker.id, job.id)
    return application


def update_application_status(db: Session, actor: User, application_id: int, status: str) -> Application:
    """
    Accept or reject a pending application.

    The transition is one conditional UPDATE on ``status = 'pending'``, so two
    concurrent decisions cannot both win.

    Raises:
        ValidationError: ``status`` is not accepted/rejected
        NotFoundError: unknown application
        AuthorizationError: actor neither owns the job nor is an admin
        InvalidTransitionError: the application was already decided
    """
    if status not in TERMINAL_STATUSES:
        raise ValidationError({"status": "Status must be 'accepted' or 'rejected'"})

    application = load_application(db, application_id)
    authorize(actor, Action.DECIDE_APPLICATION, application)

    result = db.execute(
        update(Application)
        .where(Application.id == application.id, Application.status == "pending")
        .values(status=status, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(application)
        raise InvalidTransitionError(
            f"Application is already {application.status}; only pending applications can change status"
        )
    commit(db)
    db.refresh(application)

    logger.info(
        "User id=%s marked application id=%s as %s",
        actor.id,
        application.id,
        status,
    )
    return application


def get_application(db: Session, actor: User, application_id: int) -> Application:
    application = load_application(db, application_id)
    authorize(actor, Action.VIEW_APPLICATION, application)
    return application


def list_applications(db: Session, actor: User) -> list[Application]:
    """
    Applications visible to ``actor``.

    Job seekers see their own, approved employers the applicants to their
    jobs, admins everything.
    """
    view = resolve_view(actor)
    query = db.query(Application)

    if isinstance(view, AdminView):
        pass
    elif isinstance(view, EmployerView):
        authorize(actor, Action.VIEW_EMPLOYER_JOBS, actor)
        query = query.join(Job, Application.job_id == Job.id).filter(Job.employer_id == actor.id)
    else:
        query = query.filter(Application.job_seeker_id == actor.id)

    return query.order_by(Application.applied_at.desc(), Application.id.desc()).all()


def list_job_applicants(db: Session, actor: User, job_id: int) -> list[Application]:
    job = load_job(db, job_id)
    authorize(actor, Action.VIEW_JOB_APPLICANTS, job)
    return (
        db.query(Application)
        .filter(Application.job_id == job.id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )
