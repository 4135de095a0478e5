"""
Users API Endpoints.

Own profile, public profiles, and admin user management.
"""

from math import ceil
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.serializers import CamelModel, user_profile
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.security import check_password_length
from app.models.user import User, UserRole
from app.modules.users import UserService

router = APIRouter()


# ==================== Schemas ====================


class UpdateProfileRequest(CamelModel):
    """Update own profile."""

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    grade: str | None = Field(default=None, max_length=20)
    subject: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    avatar_url: str | None = Field(default=None, max_length=500)
    password: str | None = Field(default=None, min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str | None) -> str | None:
        return v if v is None else check_password_length(v)


class UpdateStatusRequest(CamelModel):
    """Activate or deactivate an account."""

    is_active: bool


# ==================== Own profile ====================


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Get own profile."""
    return {"user": user_profile(current_user, private=True)}


@router.put("/me")
async def update_me(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Update own profile."""
    users = UserService(db)
    user = await users.update_profile(
        current_user,
        first_name=request.first_name,
        last_name=request.last_name,
        grade=request.grade,
        subject=request.subject,
        bio=request.bio,
        avatar_url=request.avatar_url,
        password=request.password,
    )

    return {
        "message": "Profile updated successfully",
        "user": user_profile(user, private=True),
    }


# ==================== Administration ====================


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: UserRole | None = Query(None),
    search: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None, alias="isActive"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """List users (admin only)."""
    users = UserService(db)
    items, total = await users.get_users(
        current_user,
        page=page,
        limit=limit,
        role=role,
        search=search,
        is_active=is_active,
    )

    return {
        "users": [user_profile(user, private=True) for user in items],
        "totalPages": ceil(total / limit),
        "currentPage": page,
        "total": total,
    }


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get another user's public profile."""
    user = await UserService(db).get_user(user_id)
    if user is None or not user.is_active:
        raise NotFoundError("User not found")

    return {"user": user_profile(user, private=user.id == current_user.id)}


@router.patch("/{user_id}/status")
async def update_user_status(
    user_id: int,
    request: UpdateStatusRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Activate or deactivate a user (admin only)."""
    users = UserService(db)
    user = await users.set_active(current_user, user_id, request.is_active)

    return {
        "message": f"User {'activated' if user.is_active else 'deactivated'} successfully",
        "user": user_profile(user, private=True),
    }
