from jobboard.schemas.user import (
    UserRegister,
    UserLogin,
    ForgotPasswordRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    ProfileUpdate,
    UserOut,
    UserDetailOut,
)
from jobboard.schemas.job import JobCreate, JobUpdate, JobSearchFilters, JobOut, JobPageOut
from jobboard.schemas.application import ApplicationStatusUpdate, ApplicationOut

__all__ = [
    "UserRegister",
    "UserLogin",
    "ForgotPasswordRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "ProfileUpdate",
    "UserOut",
    "UserDetailOut",
    "JobCreate",
    "JobUpdate",
    "JobSearchFilters",
    "JobOut",
    "JobPageOut",
    "ApplicationStatusUpdate",
    "ApplicationOut",
]
