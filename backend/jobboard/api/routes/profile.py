"""
Profile and dashboard endpoints for the signed-in user.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobboard.db.session import get_db
from jobboard.models import User
from jobboard.schemas.application import ApplicationOut
from jobboard.schemas.job import JobOut
from jobboard.schemas.user import (
    ChangePasswordRequest,
    MessageResponse,
    ProfileUpdate,
    UserDetailOut,
    UserEnvelope,
    UserOut,
)
from jobboard.api.routes.auth import get_current_user
from jobboard.services import accounts, applications, jobs
from jobboard.services.applications import missing_profile_fields
from jobboard.services.policy import EmployerView, JobSeekerView, resolve_view

router = APIRouter()


@router.get("/profile", response_model=UserEnvelope)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get the current authenticated user, without credentials."""
    return UserEnvelope(user=UserDetailOut.model_validate(current_user))


@router.patch("/profile", response_model=UserEnvelope)
def update_profile(
    patch: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.update_profile(db, current_user, current_user.id, patch)
    return UserEnvelope(user=UserDetailOut.model_validate(user))


@router.post("/profile/password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(
        db,
        current_user,
        data.current_password,
        data.new_password,
        data.confirm_password,
    )
    return MessageResponse(message="Password updated")


@router.delete("/profile", response_model=MessageResponse)
def delete_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.delete_user(db, current_user, current_user.id)
    return MessageResponse(message="Account deleted")


@router.get("/dashboard")
def dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Role-specific dashboard.

    - job seeker: own applications and profile completeness
    - employer: pending-review state, or own jobs and their applicants
    - admin: aggregate counts and employers awaiting approval
    """
    view = resolve_view(current_user)
    user = UserOut.model_validate(current_user).model_dump()

    if isinstance(view, JobSeekerView):
        own = applications.list_applications(db, current_user)
        return {
            "view": "job_seeker",
            "user": user,
            "profile_complete": not missing_profile_fields(current_user),
            "missing_profile_fields": sorted(missing_profile_fields(current_user)),
            "applications": [ApplicationOut.model_validate(a).model_dump() for a in own],
        }

    if isinstance(view, EmployerView):
        if view.pending_review:
            return {
                "view": "employer",
                "user": user,
                "pending_review": True,
                "message": "Your account is pending admin approval. "
                "You will be able to post jobs once approved.",
                "jobs": [],
                "applications": [],
            }
        own_jobs = jobs.list_employer_jobs(db, current_user, current_user.id)
        applicants = applications.list_applications(db, current_user)
        return {
            "view": "employer",
            "user": user,
            "pending_review": False,
            "jobs": [JobOut.model_validate(j).model_dump() for j in own_jobs],
            "applications": [ApplicationOut.model_validate(a).model_dump() for a in applicants],
        }

    # AdminView
    pending = [
        UserOut.model_validate(u).model_dump()
        for u in accounts.list_users(db, current_user, role="employer")
        if not u.is_approved
    ]
    return {
        "view": "admin",
        "user": user,
        "users_by_role": accounts.count_users_by_role(db),
        "jobs_by_status": jobs.count_jobs_by_status(db),
        "total_applications": len(applications.list_applications(db, current_user)),
        "pending_employers": pending,
    }
