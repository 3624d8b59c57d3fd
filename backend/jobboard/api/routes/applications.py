"""
Application endpoints.

Job seekers see their own applications; employers see and decide the
applications to their jobs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobboard.db.session import get_db
from jobboard.models import User
from jobboard.schemas.application import ApplicationOut, ApplicationStatusUpdate
from jobboard.api.routes.auth import get_current_user
from jobboard.services import applications

router = APIRouter()


@router.get("", response_model=list[ApplicationOut])
def list_applications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return applications.list_applications(db, current_user)


@router.get("/{application_id}", response_model=ApplicationOut)
def get_application(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return applications.get_application(db, current_user, application_id)


@router.patch("/{application_id}", response_model=ApplicationOut)
def update_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Accept or reject a pending application. A decision is final."""
    return applications.update_application_status(db, current_user, application_id, data.status)
