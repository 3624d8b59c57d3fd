"""
Credential & session manager.

Registration, login/logout, email verification, password reset and the
admin-side account moderation. Verification and reset tokens are stored as
digests and consumed with a single conditional UPDATE, so a token can be
used once even under concurrent requests.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from jobboard.core.config import settings
from jobboard.core.errors import AuthError, ConflictError, ValidationError
from jobboard.core.security import (
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    generate_token,
    get_password_hash,
    hash_token,
    password_policy_error,
    utcnow,
    verify_password,
)
from jobboard.models import LoginLog, RevokedToken, User
from jobboard.models.user import PROFILE_FIELDS
from jobboard.schemas.user import ProfileUpdate, UserRegister
from jobboard.services.entities import (
    commit,
    commit_or_conflict,
    find_user_by_email,
    get_user,
    normalize_email,
    unique_username,
)
from jobboard.services.mailer import Mailer
from jobboard.services.policy import Action, authorize

logger = logging.getLogger("jobboard.auth")

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
SELF_REGISTER_ROLES = ("job_seeker", "employer")

INVALID_CREDENTIALS = "Invalid email or password"
UNVERIFIED = "Please verify your email before logging in"
DISABLED = "Account is disabled"


# ============== Helpers ==============


def _check_new_password(errors: dict, password: str, confirm: str, field: str = "password") -> None:
    policy_error = password_policy_error(password)
    if policy_error:
        errors[field] = policy_error
    if password != confirm:
        errors["confirm_password"] = "Passwords don't match"


def _issue_verification_token(user: User) -> str:
    token = generate_token()
    user.verification_token_hash = hash_token(token)
    user.verification_token_expires = utcnow() + timedelta(
        hours=settings.VERIFICATION_TOKEN_EXPIRE_HOURS
    )
    return token


def _purge_revoked_tokens(db: Session) -> None:
    db.query(RevokedToken).filter(RevokedToken.expires_at <= utcnow()).delete(
        synchronize_session=False
    )


# ============== Registration ==============


def register(db: Session, data: UserRegister, mailer: Mailer) -> tuple[User, str]:
    """
    Register a job seeker or employer.

    Returns the new user and its email verification token. The token is also
    handed to the mailer; only its digest is stored.

    Raises:
        ValidationError: malformed email, weak or mismatched password,
            unknown role or missing company name
        ConflictError: email or username already registered (any case)
    """
    email = normalize_email(data.email)
    username = (data.username or "").strip().lower()
    company_name = (data.company_name or "").strip() or None

    errors: dict[str, str] = {}
    if not EMAIL_PATTERN.match(email):
        errors["email"] = "Please use a valid email address"
    if not 3 <= len(username) <= 30:
        errors["username"] = "Username must be between 3 and 30 characters"
    if data.role not in SELF_REGISTER_ROLES:
        errors["role"] = "Role must be 'job_seeker' or 'employer'"
    if data.role == "employer" and not company_name:
        errors["company_name"] = "Company name is required for employers"
    _check_new_password(errors, data.password, data.confirm_password)
    if errors:
        raise ValidationError(errors)

    if find_user_by_email(db, email):
        raise ConflictError("User already exists with this email")
    if db.query(User).filter(User.username == username).first():
        raise ConflictError("Username is already taken")

    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(data.password),
        role=data.role,
        company_name=company_name if data.role == "employer" else None,
        # Employers wait for an admin; approval is irrelevant for job seekers
        is_approved=data.role != "employer",
        email_verified=False,
        is_active=True,
    )
    token = _issue_verification_token(user)

    db.add(user)
    commit_or_conflict(db, "User already exists with this email or username")
    db.refresh(user)

    logger.info("Registered %s user id=%s", user.role, user.id)
    mailer.send_verification_email(user.email, token)
    return user, token


def ensure_admin(db: Session, email: str, password: str) -> User:
    """
    Create the administrator account if it does not exist yet.

    The username comes from the local part of ``email``, suffixed when a
    registered user already holds it.
    """
    existing = find_user_by_email(db, email)
    if existing is not None:
        return existing

    email = normalize_email(email)
    admin = User(
        username=unique_username(db, email.split("@")[0] or "admin"),
        email=email,
        hashed_password=get_password_hash(password),
        role="admin",
        legal_name="System Admin",
        is_approved=True,
        email_verified=True,
        is_active=True,
    )
    db.add(admin)
    commit_or_conflict(db, "Admin account already exists")
    db.refresh(admin)
    logger.info("Bootstrapped admin account id=%s", admin.id)
    return admin


# ============== Login / session ==============


def login(
    db: Session,
    email: str,
    password: str,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[User, str]:
    """
    Authenticate by email and password and issue a session token.

    Unknown email and wrong password fail identically.

    Raises:
        AuthError: invalid credentials, unverified email or disabled account
    """
    user = find_user_by_email(db, email)
    if user is None:
        # Same hashing cost as a real miss
        verify_password(password, dummy_password_hash())
        logger.info("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        logger.info("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS)
    if not user.email_verified:
        raise AuthError(UNVERIFIED)
    if not user.is_active:
        raise AuthError(DISABLED)

    now = utcnow()
    db.add(LoginLog(user_id=user.id, timestamp=now, ip=ip or "", user_agent=user_agent or ""))
    user.last_login = now
    commit(db)
    db.refresh(user)

    token = create_access_token(user.id, user.role)
    logger.info("User id=%s logged in", user.id)
    return user, token


def authenticate_token(db: Session, token: str) -> tuple[User, dict]:
    """
    Resolve a bearer token to its user.

    Checks signature, expiry, revocation, that the user still exists and is
    active, and that the role claim matches the stored role.
    """
    claims = decode_access_token(token)
    if claims is None:
        raise AuthError()

    if db.get(RevokedToken, claims["jti"]) is not None:
        raise AuthError("Token has been revoked")

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise AuthError()

    user = db.get(User, user_id)
    if user is None or not user.is_active or user.role != claims.get("role"):
        raise AuthError()
    return user, claims


def logout(db: Session, claims: dict) -> None:
    """Revoke the presented token until it would have expired anyway."""
    _purge_revoked_tokens(db)
    expires_at = datetime.fromtimestamp(claims["exp"], timezone.utc).replace(tzinfo=None)
    if db.get(RevokedToken, claims["jti"]) is None:
        db.add(RevokedToken(jti=claims["jti"], expires_at=expires_at))
    commit(db)
    logger.info("User id=%s logged out", claims.get("sub"))


# ============== Email verification ==============


def verify_email(db: Session, token: str) -> None:
    """
    Consume a verification token.

    Raises:
        AuthError: token missing, unknown or expired
    """
    if not token:
        raise AuthError("Email verification token is invalid or has expired")

    result = db.execute(
        update(User)
        .where(
            User.verification_token_hash == hash_token(token),
            User.verification_token_expires > utcnow(),
        )
        .values(
            email_verified=True,
            verification_token_hash=None,
            verification_token_expires=None,
        )
    )
    if result.rowcount != 1:
        db.rollback()
        raise AuthError("Email verification token is invalid or has expired")
    commit(db)
    logger.info("Email verified")


def resend_verification(db: Session, email: str, mailer: Mailer) -> Optional[str]:
    """Issue a fresh verification token. Silent for unknown or verified accounts."""
    user = find_user_by_email(db, email)
    if user is None or user.email_verified:
        return None

    token = _issue_verification_token(user)
    commit(db)
    mailer.send_verification_email(user.email, token)
    return token


# ============== Password reset ==============


def request_password_reset(db: Session, email: str, mailer: Mailer) -> Optional[str]:
    """
    Issue a one-hour password reset token.

    Unknown emails succeed silently so the endpoint does not reveal which
    addresses have accounts. Returns the token, or None when nothing was sent.
    """
    user = find_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None

    token = generate_token()
    user.reset_token_hash = hash_token(token)
    user.reset_token_expires = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    commit(db)

    logger.info("Password reset token issued for user id=%s", user.id)
    mailer.send_password_reset_email(user.email, token)
    return token


def reset_password(db: Session, token: str, new_password: str, confirm_password: str) -> None:
    """
    Set a new password using a reset token.

    Raises:
        ValidationError: weak password or confirmation mismatch
        AuthError: token missing, unknown or expired
    """
    errors: dict[str, str] = {}
    _check_new_password(errors, new_password, confirm_password, field="new_password")
    if errors:
        raise ValidationError(errors)
    if not token:
        raise AuthError("Password reset token is invalid or has expired")

    result = db.execute(
        update(User)
        .where(
            User.reset_token_hash == hash_token(token),
            User.reset_token_expires > utcnow(),
        )
        .values(
            hashed_password=get_password_hash(new_password),
            reset_token_hash=None,
            reset_token_expires=None,
        )
    )
    if result.rowcount != 1:
        db.rollback()
        raise AuthError("Password reset token is invalid or has expired")
    commit(db)
    logger.info("Password reset completed")


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError({"current_password": "Current password is incorrect"})

    errors: dict[str, str] = {}
    _check_new_password(errors, new_password, confirm_password, field="new_password")
    if errors:
        raise ValidationError(errors)

    user.hashed_password = get_password_hash(new_password)
    commit(db)
    logger.info("User id=%s changed password", user.id)


# ============== Profile & moderation ==============


def update_profile(db: Session, actor: User, user_id: int, patch: ProfileUpdate) -> User:
    """Merge the fields present in ``patch`` into the profile of ``user_id``."""
    user = get_user(db, user_id)
    authorize(actor, Action.UPDATE_PROFILE, user)

    changes = patch.model_dump(exclude_unset=True)
    if "company_name" in changes:
        if user.role != "employer":
            raise ValidationError({"company_name": "Only employers have a company name"})
        if not (changes["company_name"] or "").strip():
            raise ValidationError({"company_name": "Company name is required for employers"})

    for field, value in changes.items():
        if field in PROFILE_FIELDS:
            setattr(user, field, value)

    commit(db)
    db.refresh(user)
    return user


def approve_employer(db: Session, admin: User, user_id: int, approved: bool = True) -> User:
    """Open (or close again) job posting for an employer."""
    authorize(admin, Action.APPROVE_EMPLOYER)
    user = get_user(db, user_id)
    if user.role != "employer":
        raise ValidationError({"user_id": "User is not an employer"})

    user.is_approved = approved
    commit(db)
    db.refresh(user)
    logger.info(
        "Admin id=%s %s employer id=%s",
        admin.id,
        "approved" if approved else "revoked approval of",
        user.id,
    )
    return user


def set_active(db: Session, admin: User, user_id: int, active: bool) -> User:
    authorize(admin, Action.MODERATE_USER)
    user = get_user(db, user_id)
    if user.id == admin.id and not active:
        raise ValidationError({"user_id": "You cannot deactivate your own account"})

    user.is_active = active
    commit(db)
    db.refresh(user)
    logger.info("Admin id=%s set user id=%s active=%s", admin.id, user.id, active)
    return user


def delete_user(db: Session, actor: User, user_id: int) -> None:
    """Delete a user with its jobs and applications. Admin or self."""
    user = get_user(db, user_id)
    authorize(actor, Action.DELETE_USER, user)

    db.delete(user)
    commit(db)
    logger.info("User id=%s deleted by user id=%s", user_id, actor.id)


def list_users(db: Session, actor: User, role: Optional[str] = None) -> list[User]:
    authorize(actor, Action.LIST_USERS)
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def count_users_by_role(db: Session) -> dict[str, int]:
    rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    return {role: count for role, count in rows}
