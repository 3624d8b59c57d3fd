"""
API Router Aggregator.

Combines all routers into a single router for the main app.
"""

from fastapi import APIRouter

from jobboard.api.routes import admin, applications, auth, jobs, profile

api_router = APIRouter()

# Include all routers with their prefixes and tags
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    profile.router,
    tags=["Profile"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["Applications"],
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)
