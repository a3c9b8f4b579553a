"""
Authentication Guard

Password hashing (bcrypt), session tokens (PyJWT, HS256) and the single
FastAPI dependency that protects every authenticated route.

Guard contract:
    - no bearer token        -> 401 "Authorization token required"
    - expired token          -> 401 "Token expired"
    - bad or malformed token -> 401 "Invalid token"
    - subject not in the db  -> 401 "User not found"
    - otherwise the ``User`` is handed to the route
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from quickserve.core.config import get_settings
from quickserve.core.errors import AuthenticationError
from quickserve.database import get_db
from quickserve.models import User

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Malformed password hash encountered")
        return False


@lru_cache()
def _dummy_hash() -> str:
    return hash_password("quickserve-timing-guard")


def burn_password_check(password: str) -> None:
    """
    Run a bcrypt comparison whose result is ignored.

    Used when the account does not exist so that login takes the same time
    whether or not the email is registered.
    """
    verify_password(password, _dummy_hash())


# =============================================================================
# TOKENS
# =============================================================================

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed session token for a user.

    Args:
        user_id: Subject stored in the ``sub`` claim
        expires_delta: Lifetime override (defaults to JWT_EXPIRES_DAYS)
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(days=settings.jwt_expires_days))
    payload = {"sub": str(user_id), "iat": now, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """
    Verify a session token and return its subject (the user id).

    Raises:
        AuthenticationError: "Token expired" or "Invalid token"
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise AuthenticationError("Invalid token")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthenticationError("Invalid token")
    return subject


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency: resolve the authenticated user or raise 401."""
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthenticationError("Authorization token required")

    try:
        user_id = decode_access_token(token)
    except AuthenticationError as e:
        logger.warning(f"Auth rejected: {e.message}")
        raise

    user = await db.get(User, user_id)
    if user is None:
        logger.warning(f"Auth rejected: token subject {user_id} has no account")
        raise AuthenticationError("User not found")

    return user
