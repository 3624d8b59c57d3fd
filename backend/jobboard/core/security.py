"""
Security utilities for authentication and authorization.

Provides password hashing (bcrypt), JWT session tokens and the random
single-use tokens used for email verification and password reset.
"""

import hashlib
import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from jobboard.core.config import settings

# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# Number of random bytes in verification / reset tokens
TOKEN_BYTES = 32

PASSWORD_SYMBOLS = "@$!%*?&#^()_-+=[]{}.,;:~|/\\<>'\""

PASSWORD_POLICY_MESSAGE = (
    "Password must contain at least 8 characters, one uppercase, "
    "one lowercase, one number and one special character"
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed hash in storage
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The hashed password string
    """
    return pwd_context.hash(password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when the email is unknown so both login failures cost the same."""
    return get_password_hash(secrets.token_hex(8))


def password_policy_error(password: str) -> Optional[str]:
    """Return the policy message if ``password`` is too weak, else None."""
    if (
        len(password) < 8
        or not re.search(r"[a-z]", password)
        or not re.search(r"[A-Z]", password)
        or not re.search(r"\d", password)
        or not any(ch in PASSWORD_SYMBOLS for ch in password)
    ):
        return PASSWORD_POLICY_MESSAGE
    return None


def generate_token() -> str:
    """High-entropy random token for email links."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Digest stored in place of a verification / reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT session token.

    Args:
        user_id: Subject of the token
        role: Role of the user at issuance
        expires_delta: Optional custom expiration time

    Returns:
        The encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode = {
        "sub": str(user_id),
        "role": role,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": expire,
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT access token.

    Signature and expiry are both checked.

    Args:
        token: The JWT token string to decode

    Returns:
        The decoded token payload, or None if invalid
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", "sub", "jti"]},
        )
    except InvalidTokenError:
        return None
