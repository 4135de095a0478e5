"""
Password hashing and bearer token handling.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs whose
``sub`` claim carries the user id.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from loguru import logger

from app.core.config import get_settings


# bcrypt only looks at the first 72 bytes and newer releases refuse more.
MAX_PASSWORD_BYTES = 72


class TokenError(Exception):
    """Token is invalid, expired, or malformed."""


# ==================== Passwords ====================


def check_password_length(password: str) -> str:
    """Reject passwords bcrypt cannot hash; used by request validators."""
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ==================== Tokens ====================


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed access token for a user.

    Args:
        user_id: Subject of the token
        expires_delta: Override for the configured lifetime

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )

    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """
    Decode an access token and return the user id it carries.

    Raises:
        TokenError: Bad signature, expired, malformed, or wrong token type
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.debug("Rejected expired access token")
        raise TokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected invalid access token: {e}")
        raise TokenError(f"Invalid token: {e}") from e

    if payload.get("type") != "access":
        raise TokenError(f"Expected access token, got {payload.get('type')}")

    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenError("Invalid subject claim") from e
