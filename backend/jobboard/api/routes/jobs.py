"""
Job posting endpoints.

Browsing and search are open to anonymous visitors; posting and editing are
for approved employers, and applying is for job seekers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from jobboard.db.session import get_db
from jobboard.models import User
from jobboard.schemas.application import ApplicationOut
from jobboard.schemas.job import JobCreate, JobOut, JobPageOut, JobSearchFilters, JobUpdate
from jobboard.schemas.user import MessageResponse
from jobboard.api.routes.auth import get_current_user, get_optional_user
from jobboard.services import applications, jobs

router = APIRouter()


@router.get("", response_model=JobPageOut)
def list_jobs(
    q: Optional[str] = None,
    page: int = 1,
    limit: int = jobs.DEFAULT_PAGE_SIZE,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Active jobs, newest first, matching ``q`` in title, company or location."""
    result = jobs.list_jobs(db, viewer=viewer, q=q, page=page, limit=limit)
    return JobPageOut(
        jobs=[JobOut.model_validate(j) for j in result.jobs],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.get("/search", response_model=list[JobOut])
def search_jobs(
    q: Optional[str] = None,
    job_type: list[str] = Query(default=[]),
    experience_level: list[str] = Query(default=[]),
    experience: Optional[str] = None,
    location: Optional[str] = None,
    min_salary: Optional[float] = None,
    max_salary: Optional[float] = None,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Keyword search with filters.

    ``job_type`` and ``experience_level`` may be repeated to match any of
    several values.
    """
    filters = JobSearchFilters(
        job_types=job_type,
        experience_levels=experience_level,
        experience=experience,
        location=location,
        min_salary=min_salary,
        max_salary=max_salary,
    )
    return jobs.search_jobs(db, query_text=q, filters=filters, viewer=viewer)


@router.get("/mine", response_model=list[JobOut])
def my_jobs(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All jobs of the signed-in employer, any status."""
    return jobs.list_employer_jobs(db, current_user, current_user.id)


@router.get("/{job_id}", response_model=JobOut)
def get_job(
    job_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return jobs.get_job(db, job_id, viewer=viewer)


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return jobs.create_job(db, current_user, data)


@router.patch("/{job_id}", response_model=JobOut)
def update_job(
    job_id: int,
    patch: JobUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return jobs.update_job(db, current_user, job_id, patch)


@router.delete("/{job_id}", response_model=MessageResponse)
def delete_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    jobs.delete_job(db, current_user, job_id)
    return MessageResponse(message="Job deleted")


@router.get("/{job_id}/applications", response_model=list[ApplicationOut])
def job_applications(
    job_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Applicants to one job. Owning employer or admin."""
    return applications.list_job_applicants(db, current_user, job_id)


@router.post("/{job_id}/apply", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
def apply(
    job_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return applications.apply(db, current_user, job_id)
