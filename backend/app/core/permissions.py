"""
Authorization policy.

Every role decision in the API goes through these functions. They are pure:
no I/O, no side effects.
"""

from typing import assert_never

from app.core.exceptions import ForbiddenError
from app.models.user import User, UserRole


def is_moderator(role: UserRole) -> bool:
    """TEACHER and ADMIN moderate; STUDENT does not."""
    match role:
        case UserRole.TEACHER | UserRole.ADMIN:
            return True
        case UserRole.STUDENT:
            return False
        case _:
            assert_never(role)


def can_modify(role: UserRole, actor_id: int, owner_id: int) -> bool:
    """Owners may modify their own content; moderators may modify anyone's."""
    return actor_id == owner_id or is_moderator(role)


def can_moderate(role: UserRole) -> bool:
    return is_moderator(role)


def can_manage_users(role: UserRole) -> bool:
    match role:
        case UserRole.ADMIN:
            return True
        case UserRole.TEACHER | UserRole.STUDENT:
            return False
        case _:
            assert_never(role)


# ==================== Enforcement ====================


def require_modify(actor: User, owner_id: int, message: str) -> None:
    if not can_modify(actor.role, actor.id, owner_id):
        raise ForbiddenError(message)


def require_moderator(actor: User) -> None:
    if not can_moderate(actor.role):
        raise ForbiddenError("Access denied. Teacher or admin role required.")


def require_admin(actor: User) -> None:
    if not can_manage_users(actor.role):
        raise ForbiddenError("Access denied. Admin role required.")
