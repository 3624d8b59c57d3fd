import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobboard.core.config import settings
from jobboard.core.errors import AuthError, InternalError, JobBoardError
from jobboard.core.log import configure_logging
from jobboard.core.security import utcnow
from jobboard.db.base import Base
from jobboard.db.session import SessionLocal, engine

# Import all models so SQLAlchemy can discover them for table creation
from jobboard.models import Application, Job, LoginLog, RevokedToken, User  # noqa: F401

# Import API router
from jobboard.api.api import api_router
from jobboard.services.accounts import ensure_admin

logger = logging.getLogger("jobboard.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables and the bootstrap admin on startup."""
    configure_logging()
    Base.metadata.create_all(bind=engine)
    bootstrap_admin()
    yield


def bootstrap_admin() -> None:
    """Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD if both are set."""
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    db = SessionLocal()
    try:
        ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        db.close()


app = FastAPI(
    title=settings.APP_NAME,
    description="Job board with role-based access for job seekers, employers and admins",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Middleware - allowlist from env (comma-separated)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.BACKEND_CORS_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)


# ============== Error handlers ==============


@app.exception_handler(JobBoardError)
async def jobboard_error_handler(request: Request, exc: JobBoardError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details[".".join(loc) or "body"] = error.get("msg", "Invalid value")
    return JSONResponse(status_code=400, content={"error": "Validation error", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "timestamp": utcnow().isoformat() + "Z"}


# Include API router with /api prefix
app.include_router(api_router, prefix="/api")
