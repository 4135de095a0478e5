"""
Posts API Endpoints.

Posts, replies, likes, and moderation.
"""

from math import ceil
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.serializers import CamelModel, post_detail, reply_detail
from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.modules.forum import ForumService

router = APIRouter()

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=200)]
Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=5000)]
ReplyContent = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]
Tag = Annotated[str, StringConstraints(max_length=30)]


# ==================== Schemas ====================


class CreatePostRequest(CamelModel):
    """Create new post."""

    title: Title
    content: Content
    category: int
    tags: list[Tag] | None = None


class UpdatePostRequest(CamelModel):
    """Edit post title, content, or tags."""

    title: Title | None = None
    content: Content | None = None
    tags: list[Tag] | None = None


class CreateReplyRequest(CamelModel):
    """Reply to a post."""

    content: ReplyContent


# ==================== Posts ====================


@router.get("")
async def get_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.forum_posts_per_page, ge=1, le=settings.forum_max_posts_per_page),
    category: int | None = Query(None, description="Category ID"),
    author: int | None = Query(None, description="Author user ID"),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("lastActivity", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get posts with pagination, filtering, and sorting."""
    forum = ForumService(db)
    posts, total = await forum.get_posts(
        page=page,
        limit=limit,
        category_id=category,
        author_id=author,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    return {
        "posts": [post_detail(p) for p in posts],
        "totalPages": ceil(total / limit),
        "currentPage": page,
        "total": total,
    }


@router.get("/{post_id}")
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get post details and count the view."""
    forum = ForumService(db)
    post = await forum.view_post(post_id)

    return {"post": post_detail(post)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    request: CreatePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Create new post."""
    forum = ForumService(db)
    post = await forum.create_post(
        current_user,
        title=request.title,
        content=request.content,
        category_id=request.category,
        tags=request.tags,
    )

    return {
        "message": "Post created successfully",
        "post": post_detail(post),
    }


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    request: UpdatePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Edit post (author, teacher, or admin)."""
    forum = ForumService(db)
    post = await forum.update_post(
        current_user,
        post_id,
        title=request.title,
        content=request.content,
        tags=request.tags,
    )

    return {
        "message": "Post updated successfully",
        "post": post_detail(post),
    }


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Soft-delete post (author, teacher, or admin)."""
    forum = ForumService(db)
    await forum.delete_post(current_user, post_id)

    return {"message": "Post deleted successfully"}


# ==================== Replies ====================


@router.post("/{post_id}/replies", status_code=status.HTTP_201_CREATED)
async def add_reply(
    post_id: int,
    request: CreateReplyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Reply to an unlocked post."""
    forum = ForumService(db)
    reply = await forum.add_reply(current_user, post_id, request.content)

    return {
        "message": "Reply added successfully",
        "reply": reply_detail(reply),
    }


# ==================== Likes ====================


@router.post("/{post_id}/like")
async def like_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Like or unlike a post."""
    forum = ForumService(db)
    liked, count = await forum.toggle_post_like(current_user, post_id)

    return {
        "message": "Post liked" if liked else "Post unliked",
        "likeCount": count,
        "isLiked": liked,
    }


@router.post("/{post_id}/replies/{reply_id}/like")
async def like_reply(
    post_id: int,
    reply_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Like or unlike a reply."""
    forum = ForumService(db)
    liked, count = await forum.toggle_reply_like(current_user, post_id, reply_id)

    return {
        "message": "Reply liked" if liked else "Reply unliked",
        "likeCount": count,
        "isLiked": liked,
    }


# ==================== Moderation ====================


@router.patch("/{post_id}/pin")
async def pin_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Pin or unpin a post (teacher/admin only)."""
    forum = ForumService(db)
    pinned = await forum.toggle_pin(current_user, post_id)

    return {
        "message": f"Post {'pinned' if pinned else 'unpinned'} successfully",
        "isPinned": pinned,
    }


@router.patch("/{post_id}/lock")
async def lock_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Lock or unlock a post (teacher/admin only)."""
    forum = ForumService(db)
    locked = await forum.toggle_lock(current_user, post_id)

    return {
        "message": f"Post {'locked' if locked else 'unlocked'} successfully",
        "isLocked": locked,
    }
