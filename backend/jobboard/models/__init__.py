from jobboard.models.user import User, LoginLog, RevokedToken
from jobboard.models.job import Job
from jobboard.models.application import Application

__all__ = ["User", "LoginLog", "RevokedToken", "Job", "Application"]
