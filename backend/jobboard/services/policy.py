"""
Authorization policy.

``can_perform`` is a pure decision over (user, action, resource); every
mutating manager calls ``authorize`` before it touches storage. A deny is an
AuthorizationError, never an AuthError: the caller is known, just not allowed.

The role of a user is resolved once into a view (``JobSeekerView``,
``EmployerView`` or ``AdminView``) so callers branch on a type instead of
comparing role strings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from jobboard.core.errors import AuthorizationError
from jobboard.models import Application, Job, User


class Action(str, Enum):
    VIEW_JOB = "view_job"
    LIST_JOBS = "list_jobs"
    CREATE_JOB = "create_job"
    UPDATE_JOB = "update_job"
    DELETE_JOB = "delete_job"
    VIEW_EMPLOYER_JOBS = "view_employer_jobs"
    VIEW_JOB_APPLICANTS = "view_job_applicants"
    APPLY = "apply"
    VIEW_APPLICATION = "view_application"
    DECIDE_APPLICATION = "decide_application"
    VIEW_PROFILE = "view_profile"
    UPDATE_PROFILE = "update_profile"
    DELETE_USER = "delete_user"
    APPROVE_EMPLOYER = "approve_employer"
    MODERATE_USER = "moderate_user"
    LIST_USERS = "list_users"
    VIEW_STATS = "view_stats"


ADMIN_ONLY = {
    Action.APPROVE_EMPLOYER,
    Action.MODERATE_USER,
    Action.LIST_USERS,
    Action.VIEW_STATS,
}

# Closed to an employer until an admin approves it
JOB_MANAGEMENT = {
    Action.CREATE_JOB,
    Action.UPDATE_JOB,
    Action.DELETE_JOB,
    Action.VIEW_EMPLOYER_JOBS,
    Action.VIEW_JOB_APPLICANTS,
    Action.VIEW_APPLICATION,
    Action.DECIDE_APPLICATION,
}

# Actions only one role can take, admin included: jobs belong to an employer,
# applications to a job seeker.
ROLE_BOUND = {
    Action.APPLY: "job_seeker",
    Action.CREATE_JOB: "employer",
}


# ============== Role views ==============


@dataclass(frozen=True)
class JobSeekerView:
    user: User


@dataclass(frozen=True)
class EmployerView:
    user: User

    @property
    def pending_review(self) -> bool:
        return not self.user.is_approved


@dataclass(frozen=True)
class AdminView:
    user: User


RoleView = Union[JobSeekerView, EmployerView, AdminView]


def resolve_view(user: User) -> RoleView:
    """Map a user to the variant for its role. Unknown roles are refused."""
    if user.role == "job_seeker":
        return JobSeekerView(user)
    if user.role == "employer":
        return EmployerView(user)
    if user.role == "admin":
        return AdminView(user)
    raise AuthorizationError(f"Unknown role: {user.role}")


# ============== Decisions ==============


def _job_of(resource: Any) -> Optional[Job]:
    if isinstance(resource, Job):
        return resource
    if isinstance(resource, Application):
        return resource.job
    return None


def _owns_job(user: User, resource: Any) -> bool:
    job = _job_of(resource)
    return job is not None and job.employer_id == user.id


def _anonymous_allows(action: Action, resource: Any) -> bool:
    if action == Action.LIST_JOBS:
        return True
    if action == Action.VIEW_JOB:
        return isinstance(resource, Job) and resource.status == "active"
    return False


def _job_seeker_allows(user: User, action: Action, resource: Any) -> bool:
    if action in (Action.LIST_JOBS, Action.VIEW_JOB):
        return _anonymous_allows(action, resource)
    if action == Action.APPLY:
        return True
    if action == Action.VIEW_APPLICATION:
        return isinstance(resource, Application) and resource.job_seeker_id == user.id
    if action in (Action.VIEW_PROFILE, Action.UPDATE_PROFILE, Action.DELETE_USER):
        return isinstance(resource, User) and resource.id == user.id
    return False


def _employer_allows(user: User, action: Action, resource: Any) -> bool:
    if action in (Action.VIEW_PROFILE, Action.UPDATE_PROFILE, Action.DELETE_USER):
        return isinstance(resource, User) and resource.id == user.id
    if action == Action.LIST_JOBS:
        return True
    if action == Action.VIEW_JOB:
        return _anonymous_allows(action, resource) or _owns_job(user, resource)

    if action not in JOB_MANAGEMENT or not user.is_approved:
        return False
    if action == Action.CREATE_JOB:
        return True
    if action == Action.VIEW_EMPLOYER_JOBS:
        return isinstance(resource, User) and resource.id == user.id
    return _owns_job(user, resource)


def can_perform(user: Optional[User], action: Action, resource: Any = None) -> bool:
    """
    Decide whether ``user`` may perform ``action`` on ``resource``.

    Args:
        user: The acting user, or None for an anonymous caller
        action: What is being attempted
        resource: The Job, Application or User acted upon, when there is one

    Returns:
        True to allow, False to deny
    """
    if user is None or not user.is_active:
        return _anonymous_allows(action, resource)

    if action in ROLE_BOUND and user.role != ROLE_BOUND[action]:
        return False

    view = resolve_view(user)
    if isinstance(view, AdminView):
        return True
    if action in ADMIN_ONLY:
        return False
    if isinstance(view, EmployerView):
        return _employer_allows(user, action, resource)
    return _job_seeker_allows(user, action, resource)


def authorize(user: Optional[User], action: Action, resource: Any = None) -> None:
    """Raise AuthorizationError unless the policy allows the action."""
    if can_perform(user, action, resource):
        return

    if (
        user is not None
        and user.role == "employer"
        and not user.is_approved
        and action in JOB_MANAGEMENT
    ):
        raise AuthorizationError("Your employer account is pending admin approval")
    if action == Action.APPLY:
        raise AuthorizationError("Only job seekers can apply")
    raise AuthorizationError()
