"""
Job lifecycle manager.

Create, update, delete, list and search job postings. Listings and searches
only ever return ``active`` jobs; paused and closed jobs remain visible to
their owner and to admins through ``get_job`` and ``list_employer_jobs``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from jobboard.core.errors import NotFoundError, ValidationError
from jobboard.models import Job, User
from jobboard.models.job import EXPERIENCE_LEVELS, JOB_STATUSES, JOB_TYPES
from jobboard.schemas.job import JobCreate, JobSearchFilters, JobUpdate
from jobboard.services.entities import commit, get_user
from jobboard.services.entities import get_job as load_job
from jobboard.services.policy import Action, authorize, can_perform

logger = logging.getLogger("jobboard.jobs")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

REQUIRED_TEXT_FIELDS = ("title", "description", "salary", "location", "experience")

SKILL_DELIMITERS = re.compile(r"[,;\n]")
SALARY_NUMBER = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([kK])?")


@dataclass
class JobPage:
    jobs: list[Job]
    total: int
    page: int
    limit: int


# ============== Field handling ==============


def split_skills(skills: Any) -> list[str]:
    """Turn a delimited string or a list into an ordered list of trimmed skills."""
    if skills is None:
        return []
    if isinstance(skills, str):
        parts = SKILL_DELIMITERS.split(skills)
    else:
        parts = list(skills)
    return [part.strip() for part in parts if part and part.strip()]


def parse_salary_range(text: str) -> tuple[Optional[float], Optional[float]]:
    """
    Extract a numeric range from a display salary.

    ``"$80,000 - $120,000"`` -> (80000, 120000), ``"$50k - $80k"`` ->
    (50000, 80000), ``"$30/hr"`` -> (30, 30), ``"Competitive"`` -> (None, None).
    """
    values = []
    for number, thousands in SALARY_NUMBER.findall(text or ""):
        value = float(number.replace(",", ""))
        if thousands:
            value *= 1000
        values.append(value)

    if not values:
        return None, None
    if len(values) == 1:
        return values[0], values[0]
    return min(values[:2]), max(values[:2])


def _parse_deadline(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError({"application_deadline": "Application deadline must be a date (YYYY-MM-DD)"})


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalise a complete set of job fields."""
    errors: dict[str, str] = {}
    cleaned = dict(fields)

    for name in REQUIRED_TEXT_FIELDS:
        value = (fields.get(name) or "").strip()
        if not value:
            errors[name] = f"{name.replace('_', ' ').capitalize()} is required"
        cleaned[name] = value

    job_type = (fields.get("job_type") or "").strip().lower()
    if job_type not in JOB_TYPES:
        errors["job_type"] = f"Job type must be one of: {', '.join(JOB_TYPES)}"
    cleaned["job_type"] = job_type

    level = fields.get("experience_level")
    if level:
        level = level.strip().lower()
        if level not in EXPERIENCE_LEVELS:
            errors["experience_level"] = f"Experience level must be one of: {', '.join(EXPERIENCE_LEVELS)}"
    cleaned["experience_level"] = level or None

    status = fields.get("status", "active")
    if status not in JOB_STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(JOB_STATUSES)}"

    salary_min, salary_max = fields.get("salary_min"), fields.get("salary_max")
    if salary_min is None and salary_max is None:
        salary_min, salary_max = parse_salary_range(cleaned["salary"])
    if (salary_min is not None and salary_min < 0) or (salary_max is not None and salary_max < 0):
        errors["salary"] = "Salary cannot be negative"
    elif salary_min is not None and salary_max is not None and salary_min > salary_max:
        errors["salary_min"] = "Minimum salary cannot exceed maximum salary"
    cleaned["salary_min"], cleaned["salary_max"] = salary_min, salary_max

    cleaned["skills_required"] = split_skills(fields.get("skills_required"))

    try:
        cleaned["application_deadline"] = _parse_deadline(fields.get("application_deadline"))
    except ValidationError as exc:
        errors.update(exc.details)

    if errors:
        raise ValidationError(errors)
    return cleaned


# ============== Mutations ==============


def create_job(db: Session, employer: User, data: JobCreate) -> Job:
    """
    Post a job for an approved employer.

    Raises:
        AuthorizationError: not an employer, or not approved yet
        ValidationError: missing fields, unknown job type, bad deadline
    """
    authorize(employer, Action.CREATE_JOB)
    fields = _clean_fields(data.model_dump())

    job = Job(
        employer_id=employer.id,
        company_name=employer.company_name or "",
        status="active",
        **{key: value for key, value in fields.items() if key != "status"},
    )
    db.add(job)
    commit(db)
    db.refresh(job)

    logger.info("Employer id=%s created job id=%s", employer.id, job.id)
    return job


def update_job(db: Session, actor: User, job_id: int, patch: JobUpdate) -> Job:
    """
    Merge ``patch`` into a job. Owner or admin.

    ``id``, ``employer_id`` and ``company_name`` cannot be changed.
    """
    job = load_job(db, job_id)
    authorize(actor, Action.UPDATE_JOB, job)

    changes = patch.model_dump(exclude_unset=True)
    if "salary" in changes and "salary_min" not in changes and "salary_max" not in changes:
        # Re-derive the numeric range from the new display string
        changes["salary_min"] = None
        changes["salary_max"] = None

    current = {
        "title": job.title,
        "description": job.description,
        "salary": job.salary,
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "location": job.location,
        "job_type": job.job_type,
        "skills_required": job.skills_required,
        "experience": job.experience,
        "experience_level": job.experience_level,
        "application_deadline": job.application_deadline,
        "status": job.status,
    }
    current.update(changes)
    fields = _clean_fields(current)

    for key, value in fields.items():
        setattr(job, key, value)
    commit(db)
    db.refresh(job)

    logger.info("User id=%s updated job id=%s", actor.id, job.id)
    return job


def delete_job(db: Session, actor: User, job_id: int) -> None:
    """Delete a job and its applications. Owner or admin."""
    job = load_job(db, job_id)
    authorize(actor, Action.DELETE_JOB, job)

    db.delete(job)
    commit(db)
    logger.info("User id=%s deleted job id=%s", actor.id, job_id)


# ============== Queries ==============


def get_job(db: Session, job_id: int, viewer: Optional[User] = None) -> Job:
    """Fetch a job; jobs the viewer may not see are reported as missing."""
    job = load_job(db, job_id)
    if not can_perform(viewer, Action.VIEW_JOB, job):
        raise NotFoundError("Job not found")
    return job


def _matches(columns, text: str):
    """Case-insensitive substring match on any of ``columns``."""
    needle = text.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return or_(*[column.ilike(f"%{needle}%", escape="\\") for column in columns])


def _paginate(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        raise ValidationError({"page": "Page must be 1 or greater"})
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError({"limit": f"Limit must be between 1 and {MAX_PAGE_SIZE}"})
    return page, limit


def list_jobs(
    db: Session,
    viewer: Optional[User] = None,
    q: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> JobPage:
    """Active jobs, newest first, optionally matching ``q`` in title, company or location."""
    authorize(viewer, Action.LIST_JOBS)
    page, limit = _paginate(page, limit)

    query = db.query(Job).filter(Job.status == "active")
    if q and q.strip():
        query = query.filter(_matches((Job.title, Job.company_name, Job.location), q))

    total = query.count()
    jobs = (
        query.order_by(Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return JobPage(jobs=jobs, total=total, page=page, limit=limit)


def search_jobs(
    db: Session,
    query_text: Optional[str] = None,
    filters: Optional[JobSearchFilters] = None,
    viewer: Optional[User] = None,
) -> list[Job]:
    """
    Keyword search over active jobs.

    The keyword is a case-insensitive substring match on title, description
    or location. Filters narrow the result further:

    - ``job_types`` / ``experience_levels``: any of the listed values
    - ``experience`` / ``location``: case-insensitive substring
    - ``min_salary`` / ``max_salary``: the job's salary range must overlap;
      jobs without a numeric salary are excluded when either bound is set
    """
    authorize(viewer, Action.LIST_JOBS)
    filters = filters or JobSearchFilters()

    query = db.query(Job).filter(Job.status == "active")
    if query_text and query_text.strip():
        query = query.filter(_matches((Job.title, Job.description, Job.location), query_text))

    if filters.job_types:
        query = query.filter(Job.job_type.in_([t.lower() for t in filters.job_types]))
    if filters.experience_levels:
        query = query.filter(Job.experience_level.in_([lvl.lower() for lvl in filters.experience_levels]))
    if filters.experience:
        query = query.filter(_matches((Job.experience,), filters.experience))
    if filters.location:
        query = query.filter(_matches((Job.location,), filters.location))

    if filters.min_salary is not None:
        query = query.filter(
            Job.salary_min.isnot(None),
            func.coalesce(Job.salary_max, Job.salary_min) >= filters.min_salary,
        )
    if filters.max_salary is not None:
        query = query.filter(and_(Job.salary_min.isnot(None), Job.salary_min <= filters.max_salary))

    return query.order_by(Job.created_at.desc(), Job.id.desc()).all()


def list_employer_jobs(db: Session, actor: User, employer_id: int) -> list[Job]:
    """All jobs of an employer, any status. The employer itself or an admin."""
    employer = get_user(db, employer_id)
    authorize(actor, Action.VIEW_EMPLOYER_JOBS, employer)
    return (
        db.query(Job)
        .filter(Job.employer_id == employer.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .all()
    )


def count_jobs_by_status(db: Session) -> dict[str, int]:
    rows = db.query(Job.status, func.count(Job.id)).group_by(Job.status).all()
    return {status: count for status, count in rows}
