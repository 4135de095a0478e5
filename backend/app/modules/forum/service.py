"""
Forum Service - Category, post, reply, and like management.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from loguru import logger
from slugify import slugify
from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, with_expression

from app.core.database import commit_or_raise
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.permissions import require_moderator, require_modify
from app.models.forum import (
    ContentStatus,
    ForumCategory,
    ForumPost,
    ForumPostLike,
    ForumReply,
    ForumReplyLike,
)
from app.models.user import User
from app.modules.forum import lifecycle

DEFAULT_CATEGORY_COLOR = "#3B82F6"

SORT_COLUMNS = {
    "lastActivity": ForumPost.last_activity,
    "createdAt": ForumPost.created_at,
    "updatedAt": ForumPost.updated_at,
    "views": ForumPost.views,
    "title": ForumPost.title,
}


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Strip tags and drop empties and repeats, keeping first-seen order."""
    result: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def category_slug(name: str) -> str:
    return slugify(name)[:60] or f"category-{uuid4().hex[:8]}"


class ForumService:
    """
    Service for managing forum categories, posts, replies, and likes.

    Mutating methods take the acting user, consult the authorization policy
    and lifecycle guards, and commit exactly once.

    Usage:
        forum = ForumService(db_session)
        posts, total = await forum.get_posts(category_id=3, search="algebra")
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize forum service with database session."""
        self.db = db

    # ==================== Categories ====================

    def _category_query(self) -> Any:
        post_count = (
            select(func.count(ForumPost.id))
            .where(
                ForumPost.category_id == ForumCategory.id,
                ForumPost.status == ContentStatus.ACTIVE,
            )
            .correlate(ForumCategory)
            .scalar_subquery()
        )
        return (
            select(ForumCategory)
            .options(
                selectinload(ForumCategory.created_by),
                with_expression(ForumCategory.post_count, post_count),
            )
            .execution_options(populate_existing=True)
        )

    async def get_categories(self) -> list[ForumCategory]:
        """Get all active categories, newest first."""
        query = (
            self._category_query()
            .where(ForumCategory.status == ContentStatus.ACTIVE)
            .order_by(ForumCategory.created_at.desc(), ForumCategory.id.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_category(self, category_id: int) -> ForumCategory | None:
        """Get category by ID, whatever its status."""
        query = self._category_query().where(ForumCategory.id == category_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_category_by_name(
        self,
        name: str,
        exclude_id: int | None = None,
    ) -> ForumCategory | None:
        """
        Find a category whose name or slug collides with ``name``.

        Deleted categories are included: their names stay reserved.
        """
        query = select(ForumCategory).where(
            or_(ForumCategory.name == name, ForumCategory.slug == category_slug(name))
        )
        if exclude_id is not None:
            query = query.where(ForumCategory.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def create_category(
        self,
        actor: User,
        name: str,
        description: str,
        color: str | None = None,
        icon: str | None = None,
    ) -> ForumCategory:
        """Create new forum category (moderators only)."""
        require_moderator(actor)

        if await self.find_category_by_name(name):
            raise ConflictError("Category already exists")

        category = ForumCategory(
            name=name,
            slug=category_slug(name),
            description=description,
            color=color or DEFAULT_CATEGORY_COLOR,
            icon=icon,
            created_by_id=actor.id,
            status=ContentStatus.ACTIVE,
        )
        self.db.add(category)
        await commit_or_raise(self.db, "Category already exists")

        logger.info(f"Category '{name}' created by user {actor.id}")
        return await self.get_category(category.id)

    async def update_category(
        self,
        actor: User,
        category_id: int,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
        icon: str | None = None,
    ) -> ForumCategory:
        """Update category fields (moderators only)."""
        require_moderator(actor)
        category = lifecycle.ensure_category_visible(await self.get_category(category_id))

        if name and name != category.name:
            if await self.find_category_by_name(name, exclude_id=category.id):
                raise ConflictError("Category name already exists")
            category.name = name
            category.slug = category_slug(name)
        if description:
            category.description = description
        if color:
            category.color = color
        if icon is not None:
            category.icon = icon

        await commit_or_raise(self.db, "Category name already exists")
        return await self.get_category(category.id)

    async def delete_category(self, actor: User, category_id: int) -> None:
        """Soft-delete category (moderators only)."""
        require_moderator(actor)
        category = lifecycle.ensure_category_visible(await self.get_category(category_id))

        lifecycle.soft_delete(category)
        await commit_or_raise(self.db)

        logger.info(f"Category {category_id} deleted by user {actor.id}")

    # ==================== Posts ====================

    def _post_query(self) -> Any:
        return (
            select(ForumPost)
            .options(
                selectinload(ForumPost.author),
                selectinload(ForumPost.category),
                selectinload(ForumPost.replies).selectinload(ForumReply.author),
                selectinload(ForumPost.replies).selectinload(ForumReply.likes),
                selectinload(ForumPost.likes).selectinload(ForumPostLike.user),
            )
            .execution_options(populate_existing=True)
        )

    async def get_posts(
        self,
        page: int = 1,
        limit: int = 10,
        category_id: int | None = None,
        author_id: int | None = None,
        search: str | None = None,
        sort_by: str = "lastActivity",
        sort_order: str = "desc",
    ) -> tuple[list[ForumPost], int]:
        """
        Get active posts with pagination, filtering, and sorting.

        Args:
            page: 1-based page number
            limit: Page size
            category_id: Filter by category
            author_id: Filter by author
            search: Case-insensitive match on title, content, or tags
            sort_by: One of SORT_COLUMNS
            sort_order: "asc" or "desc"

        Returns:
            Page of posts and total number of matching posts
        """
        if sort_by not in SORT_COLUMNS:
            raise ValidationError.for_field(
                "sortBy", f"sortBy must be one of: {', '.join(SORT_COLUMNS)}"
            )

        filters = [ForumPost.status == ContentStatus.ACTIVE]
        if category_id is not None:
            filters.append(ForumPost.category_id == category_id)
        if author_id is not None:
            filters.append(ForumPost.author_id == author_id)
        if search:
            filters.append(
                or_(
                    ForumPost.title.icontains(search, autoescape=True),
                    ForumPost.content.icontains(search, autoescape=True),
                    cast(ForumPost.tags, String).icontains(search, autoescape=True),
                )
            )

        total = await self.db.scalar(select(func.count(ForumPost.id)).where(*filters))

        column = SORT_COLUMNS[sort_by]
        order = column.asc() if sort_order == "asc" else column.desc()
        query = (
            self._post_query()
            .where(*filters)
            .order_by(order, ForumPost.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total or 0

    async def get_post(self, post_id: int) -> ForumPost | None:
        """Get post by ID with author, category, replies, and likes, whatever its status."""
        result = await self.db.execute(self._post_query().where(ForumPost.id == post_id))
        return result.scalar_one_or_none()

    async def view_post(self, post_id: int) -> ForumPost:
        """Fetch an active post and count the view."""
        post = lifecycle.ensure_post_visible(await self.get_post(post_id))

        await self.db.execute(
            update(ForumPost)
            .where(ForumPost.id == post_id)
            .values(views=ForumPost.views + 1, updated_at=ForumPost.updated_at)
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(self.db)
        await self.db.refresh(post, attribute_names=["views"])
        return post

    async def create_post(
        self,
        actor: User,
        title: str,
        content: str,
        category_id: int,
        tags: list[str] | None = None,
    ) -> ForumPost:
        """
        Create new post in an active category.

        Raises:
            ValidationError: Category missing or deleted
        """
        category = await self.db.get(ForumCategory, category_id)
        if category is None or not category.is_active:
            raise ValidationError("Invalid category")

        now = datetime.now(timezone.utc)
        post = ForumPost(
            title=title,
            content=content,
            author_id=actor.id,
            category_id=category_id,
            tags=normalize_tags(tags),
            status=ContentStatus.ACTIVE,
            views=0,
            is_pinned=False,
            is_locked=False,
            is_edited=False,
            last_activity=now,
        )
        self.db.add(post)
        await commit_or_raise(self.db)

        logger.info(f"Post {post.id} created by user {actor.id} in category {category_id}")
        return await self.get_post(post.id)

    async def update_post(
        self,
        actor: User,
        post_id: int,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> ForumPost:
        """Edit title, content, or tags (owner or moderator)."""
        post = lifecycle.ensure_post_visible(await self.get_post(post_id))
        require_modify(actor, post.author_id, "Not authorized to edit this post")

        if title:
            post.title = title
        if content:
            post.content = content
        if tags is not None:
            post.tags = normalize_tags(tags)
        lifecycle.mark_edited(post)

        await commit_or_raise(self.db)
        return await self.get_post(post.id)

    async def delete_post(self, actor: User, post_id: int) -> None:
        """Soft-delete post (owner or moderator)."""
        post = lifecycle.ensure_post_visible(await self.db.get(ForumPost, post_id))
        require_modify(actor, post.author_id, "Not authorized to delete this post")

        lifecycle.soft_delete(post)
        await commit_or_raise(self.db)

        logger.info(f"Post {post_id} deleted by user {actor.id}")

    # ==================== Moderation ====================

    async def toggle_pin(self, actor: User, post_id: int) -> bool:
        """Pin or unpin post (moderators only). Returns new pin state."""
        post = lifecycle.ensure_post_visible(await self.db.get(ForumPost, post_id))
        require_moderator(actor)

        pinned = lifecycle.toggle_pin(post)
        await commit_or_raise(self.db)

        logger.info(f"Post {post_id} {'pinned' if pinned else 'unpinned'} by user {actor.id}")
        return pinned

    async def toggle_lock(self, actor: User, post_id: int) -> bool:
        """Lock or unlock post (moderators only). Returns new lock state."""
        post = lifecycle.ensure_post_visible(await self.db.get(ForumPost, post_id))
        require_moderator(actor)

        locked = lifecycle.toggle_lock(post)
        await commit_or_raise(self.db)

        logger.info(f"Post {post_id} {'locked' if locked else 'unlocked'} by user {actor.id}")
        return locked

    # ==================== Replies ====================

    async def add_reply(self, actor: User, post_id: int, content: str) -> ForumReply:
        """
        Append reply to an active, unlocked post.

        Raises:
            NotFoundError: Post missing or deleted
            ForbiddenError: Post is locked
        """
        post = await self.db.get(ForumPost, post_id)
        lifecycle.ensure_open_for_replies(post)

        reply = ForumReply(post_id=post_id, author_id=actor.id, content=content)
        self.db.add(reply)
        post.last_activity = datetime.now(timezone.utc)
        await commit_or_raise(self.db)

        result = await self.db.execute(
            select(ForumReply)
            .options(selectinload(ForumReply.author), selectinload(ForumReply.likes))
            .where(ForumReply.id == reply.id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    # ==================== Likes ====================

    async def toggle_post_like(self, actor: User, post_id: int) -> tuple[bool, int]:
        """
        Like or unlike post. Allowed on locked posts.

        Returns:
            Whether the post is now liked by the actor, and the new like count
        """
        lifecycle.ensure_post_visible(await self.db.get(ForumPost, post_id))

        result = await self.db.execute(
            select(ForumPostLike).where(
                ForumPostLike.post_id == post_id,
                ForumPostLike.user_id == actor.id,
            )
        )
        existing = result.scalar_one_or_none()

        if existing:
            await self.db.delete(existing)
        else:
            self.db.add(ForumPostLike(post_id=post_id, user_id=actor.id))
        await commit_or_raise(self.db, "Post already liked")

        count = await self.db.scalar(
            select(func.count(ForumPostLike.id)).where(ForumPostLike.post_id == post_id)
        )
        return existing is None, count or 0

    async def toggle_reply_like(
        self,
        actor: User,
        post_id: int,
        reply_id: int,
    ) -> tuple[bool, int]:
        """Like or unlike a reply on an active post."""
        lifecycle.ensure_post_visible(await self.db.get(ForumPost, post_id))

        reply = await self.db.get(ForumReply, reply_id)
        if reply is None or reply.post_id != post_id:
            raise NotFoundError("Reply not found")

        result = await self.db.execute(
            select(ForumReplyLike).where(
                ForumReplyLike.reply_id == reply_id,
                ForumReplyLike.user_id == actor.id,
            )
        )
        existing = result.scalar_one_or_none()

        if existing:
            await self.db.delete(existing)
        else:
            self.db.add(ForumReplyLike(reply_id=reply_id, user_id=actor.id))
        await commit_or_raise(self.db, "Reply already liked")

        count = await self.db.scalar(
            select(func.count(ForumReplyLike.id)).where(ForumReplyLike.reply_id == reply_id)
        )
        return existing is None, count or 0
