"""
Authentication API endpoints.

Registration, login/logout, email verification and password reset, plus the
bearer-token dependencies every other router uses.
"""

from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from jobboard.core.config import settings
from jobboard.core.errors import AuthError
from jobboard.db.session import get_db
from jobboard.models import User
from jobboard.schemas.user import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginResponse,
    MessageResponse,
    RegisterResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    UserLogin,
    UserOut,
    UserRegister,
)
from jobboard.services import accounts
from jobboard.services.mailer import Mailer, get_mailer, reset_link

router = APIRouter()

# Bearer scheme; missing headers are reported by us as AuthError
bearer_scheme = HTTPBearer(auto_error=False)


# ============== Dependencies ==============


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> tuple[User, dict]:
    """The authenticated user and the claims of the token presented."""
    if credentials is None or not credentials.credentials:
        raise AuthError("No token provided")
    return accounts.authenticate_token(db, credentials.credentials)


def get_current_user(session: tuple[User, dict] = Depends(get_current_session)) -> User:
    """
    Dependency to get the current authenticated user from the JWT token.

    Raises AuthError (401) if the token is missing, invalid, expired or revoked.
    """
    return session[0]


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if credentials is None or not credentials.credentials:
        return None
    user, _ = accounts.authenticate_token(db, credentials.credentials)
    return user


# ============== API Endpoints ==============


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserRegister,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Register a new job seeker or employer.

    A verification email is sent; the account cannot log in until the
    address is verified. Employers additionally wait for admin approval
    before they can post jobs.
    """
    user, _ = accounts.register(db, data, mailer)
    return RegisterResponse(
        message="Registration successful. Please check your email to verify your account.",
        user=UserOut.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse)
def login(data: UserLogin, request: Request, db: Session = Depends(get_db)):
    """Login with email and password and get a JWT session token."""
    user, token = accounts.login(
        db,
        data.email,
        data.password,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return LoginResponse(message="Login successful", user=UserOut.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    session: tuple[User, dict] = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Revoke the token used for this request."""
    accounts.logout(db, session[1])
    return MessageResponse(message="Logged out")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Request a password reset email.

    The response is the same whether or not the email has an account.
    """
    token = accounts.request_password_reset(db, data.email, mailer)
    link = reset_link(token) if token and settings.EXPOSE_RESET_LINK else None
    return ForgotPasswordResponse(
        message="If an account exists for that email, password reset instructions have been sent",
        resetLink=link,
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password. A bad or used token is a 400, like any other bad input."""
    try:
        accounts.reset_password(db, data.token, data.new_password, data.confirm_password)
    except AuthError as exc:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})
    return MessageResponse(message="Password reset successful")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    data: ResendVerificationRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    accounts.resend_verification(db, data.email, mailer)
    return MessageResponse(
        message="If the account exists and is not verified yet, a new verification email has been sent"
    )


@router.get("/verify-email")
def verify_email(token: str = Query(default=""), db: Session = Depends(get_db)):
    """Verify an email address and redirect to the login page."""
    login_url = f"{settings.FRONTEND_URL}/login"
    try:
        accounts.verify_email(db, token)
    except AuthError as exc:
        return RedirectResponse(
            f"{login_url}?{urlencode({'error': exc.message})}",
            status_code=status.HTTP_302_FOUND,
        )
    return RedirectResponse(f"{login_url}?verified=true", status_code=status.HTTP_302_FOUND)
