"""
Request base model and JSON response shaping.

Clients speak camelCase; request models accept both camelCase and
snake_case field names.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.forum import ForumCategory, ForumPost, ForumReply
from app.models.user import User


class CamelModel(BaseModel):
    """Request body accepting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ==================== Users ====================


def user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "fullName": user.full_name,
        "role": user.role.value,
    }


def user_auth(user: User) -> dict[str, Any]:
    """User block returned with a token."""
    return {**user_summary(user), "email": user.email}


def user_profile(user: User, private: bool = False) -> dict[str, Any]:
    """Full profile. Email and login data only when ``private``."""
    data = {
        "id": user.id,
        "username": user.username,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "fullName": user.full_name,
        "role": user.role.value,
        "grade": user.grade,
        "subject": user.subject,
        "bio": user.bio,
        "avatarUrl": user.avatar_url,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
    }
    if private:
        data.update(
            email=user.email,
            lastLogin=_iso(user.last_login),
            updatedAt=_iso(user.updated_at),
        )
    return data


# ==================== Categories ====================


def category_detail(category: ForumCategory) -> dict[str, Any]:
    creator = category.created_by
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "color": category.color,
        "icon": category.icon,
        "isActive": category.is_active,
        "postCount": category.post_count or 0,
        "createdBy": {
            "id": creator.id,
            "username": creator.username,
            "firstName": creator.first_name,
            "lastName": creator.last_name,
            "fullName": creator.full_name,
        } if creator else None,
        "createdAt": _iso(category.created_at),
        "updatedAt": _iso(category.updated_at),
    }


# ==================== Posts ====================


def reply_detail(reply: ForumReply) -> dict[str, Any]:
    return {
        "id": reply.id,
        "content": reply.content,
        "author": user_summary(reply.author) if reply.author else None,
        "likeCount": len(reply.likes),
        "likes": [like.user_id for like in reply.likes],
        "createdAt": _iso(reply.created_at),
    }


def post_detail(post: ForumPost) -> dict[str, Any]:
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "tags": list(post.tags or []),
        "author": user_summary(post.author) if post.author else None,
        "category": {
            "id": post.category.id,
            "name": post.category.name,
            "color": post.category.color,
        } if post.category else None,
        "replies": [reply_detail(reply) for reply in post.replies],
        "replyCount": len(post.replies),
        "likes": [
            {"id": like.user.id, "username": like.user.username, "fullName": like.user.full_name}
            for like in post.likes
        ],
        "likeCount": len(post.likes),
        "views": post.views,
        "isPinned": post.is_pinned,
        "isLocked": post.is_locked,
        "isActive": post.is_active,
        "isEdited": post.is_edited,
        "editedAt": _iso(post.edited_at),
        "lastActivity": _iso(post.last_activity),
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }
