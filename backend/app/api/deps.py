"""
Shared API dependencies.
"""

from fastapi import Depends, Header
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import UnauthenticatedError
from app.core.security import TokenError, decode_access_token
from app.models.user import User


async def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user or fail with 401."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthenticatedError("Access denied. No token provided.")

    token = authorization.split(" ", maxsplit=1)[1].strip()
    if not token:
        raise UnauthenticatedError("Access denied. No token provided.")

    try:
        user_id = decode_access_token(token)
    except TokenError as e:
        logger.debug(f"Bearer token rejected: {e}")
        raise UnauthenticatedError("Invalid token") from e

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        logger.debug(f"Bearer token for missing or inactive user {user_id}")
        raise UnauthenticatedError("Invalid token")

    return user
