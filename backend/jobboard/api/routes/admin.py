"""
Admin API endpoints.

Employer approval and account moderation. Every endpoint requires an
authenticated admin; the check happens in the accounts service.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobboard.core.errors import ValidationError
from jobboard.db.session import get_db
from jobboard.models import Application, User
from jobboard.models.user import ROLES
from jobboard.schemas.user import MessageResponse, UserDetailOut, UserEnvelope
from jobboard.api.routes.auth import get_current_user
from jobboard.services import accounts, jobs
from jobboard.services.policy import Action, authorize

router = APIRouter()


class AdminUserList(BaseModel):
    total: int
    users: list[UserDetailOut]


class AdminStats(BaseModel):
    users_by_role: dict[str, int]
    jobs_by_status: dict[str, int]
    total_applications: int
    pending_employers: int


@router.get("/users", response_model=AdminUserList)
def list_users(
    role: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if role is not None and role not in ROLES:
        raise ValidationError({"role": f"Role must be one of: {', '.join(ROLES)}"})
    users = accounts.list_users(db, current_user, role=role)
    return AdminUserList(total=len(users), users=[UserDetailOut.model_validate(u) for u in users])


@router.post("/employers/{user_id}/approve", response_model=UserEnvelope)
def approve_employer(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.approve_employer(db, current_user, user_id, approved=True)
    return UserEnvelope(user=UserDetailOut.model_validate(user))


@router.post("/employers/{user_id}/revoke", response_model=UserEnvelope)
def revoke_employer(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.approve_employer(db, current_user, user_id, approved=False)
    return UserEnvelope(user=UserDetailOut.model_validate(user))


@router.post("/users/{user_id}/deactivate", response_model=UserEnvelope)
def deactivate_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Disable an account. Its sessions stop working immediately."""
    user = accounts.set_active(db, current_user, user_id, active=False)
    return UserEnvelope(user=UserDetailOut.model_validate(user))


@router.post("/users/{user_id}/activate", response_model=UserEnvelope)
def activate_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = accounts.set_active(db, current_user, user_id, active=True)
    return UserEnvelope(user=UserDetailOut.model_validate(user))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a user together with its jobs and applications."""
    accounts.delete_user(db, current_user, user_id)
    return MessageResponse(message="User deleted")


@router.get("/stats", response_model=AdminStats)
def stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    authorize(current_user, Action.VIEW_STATS)
    pending = (
        db.query(User)
        .filter(User.role == "employer", User.is_approved.is_(False))
        .count()
    )
    return AdminStats(
        users_by_role=accounts.count_users_by_role(db),
        jobs_by_status=jobs.count_jobs_by_status(db),
        total_applications=db.query(Application).count(),
        pending_employers=pending,
    )
