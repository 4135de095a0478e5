"""
Content lifecycle guards for posts and categories.

Posts move Active -> (Locked <-> Active) -> Deleted. Deleted is terminal and
behaves as absent for every operation, so each guard here raises
``NotFoundError`` rather than a policy error for tombstoned content.
"""

from datetime import datetime, timezone

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.forum import ContentStatus, ForumCategory, ForumPost


def ensure_post_visible(post: ForumPost | None) -> ForumPost:
    """Return the post if it exists and is not deleted."""
    if post is None or post.status is not ContentStatus.ACTIVE:
        raise NotFoundError("Post not found")
    return post


def ensure_category_visible(category: ForumCategory | None) -> ForumCategory:
    """Return the category if it exists and is not deleted."""
    if category is None or category.status is not ContentStatus.ACTIVE:
        raise NotFoundError("Category not found")
    return category


def ensure_open_for_replies(post: ForumPost) -> None:
    """Locked posts accept no replies from anyone, moderators included."""
    ensure_post_visible(post)
    if post.is_locked:
        raise ForbiddenError("Post is locked")


def mark_edited(post: ForumPost) -> None:
    post.is_edited = True
    post.edited_at = datetime.now(timezone.utc)


def soft_delete(content: ForumPost | ForumCategory) -> None:
    content.status = ContentStatus.DELETED


def toggle_pin(post: ForumPost) -> bool:
    post.is_pinned = not post.is_pinned
    return post.is_pinned


def toggle_lock(post: ForumPost) -> bool:
    post.is_locked = not post.is_locked
    return post.is_locked
