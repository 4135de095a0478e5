"""
Categories API Endpoints.

Anyone may browse categories; teachers and admins manage them.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import Field, StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.serializers import CamelModel, category_detail
from app.core.database import get_db
from app.models.user import User
from app.modules.forum import ForumService
from app.modules.forum.lifecycle import ensure_category_visible

router = APIRouter()

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

CategoryName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


# ==================== Schemas ====================


class CreateCategoryRequest(CamelModel):
    """Create new category."""

    name: CategoryName
    description: Description
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    icon: str | None = Field(default=None, max_length=50)


class UpdateCategoryRequest(CamelModel):
    """Update category fields."""

    name: CategoryName | None = None
    description: Description | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    icon: str | None = Field(default=None, max_length=50)


# ==================== Routes ====================


@router.get("")
async def get_categories(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Get all active categories."""
    forum = ForumService(db)
    categories = await forum.get_categories()

    return {"categories": [category_detail(cat) for cat in categories]}


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get category details."""
    forum = ForumService(db)
    category = ensure_category_visible(await forum.get_category(category_id))

    return {"category": category_detail(category)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CreateCategoryRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Create new category (teacher/admin only)."""
    forum = ForumService(db)
    category = await forum.create_category(
        current_user,
        name=request.name,
        description=request.description,
        color=request.color,
        icon=request.icon.strip() if request.icon else None,
    )

    return {
        "message": "Category created successfully",
        "category": category_detail(category),
    }


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    request: UpdateCategoryRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Update category (teacher/admin only)."""
    forum = ForumService(db)
    category = await forum.update_category(
        current_user,
        category_id,
        name=request.name,
        description=request.description,
        color=request.color,
        icon=request.icon.strip() if request.icon else None,
    )

    return {
        "message": "Category updated successfully",
        "category": category_detail(category),
    }


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Soft-delete category (teacher/admin only)."""
    forum = ForumService(db)
    await forum.delete_category(current_user, category_id)

    return {"message": "Category deleted successfully"}
