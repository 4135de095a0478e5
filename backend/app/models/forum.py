"""
Forum models for school discussions.

Includes:
- Categories (subjects/sections)
- Posts (threads)
- Replies
- Likes on posts and replies
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, query_expression, relationship

from app.core.database import Base
from app.models.user import utc_now

if TYPE_CHECKING:
    from app.models.user import User


class ContentStatus(str, PyEnum):
    """Lifecycle state of forum content. DELETED is a terminal tombstone."""

    ACTIVE = "active"
    DELETED = "deleted"


content_status_type = Enum(ContentStatus, name="content_status")


class ForumCategory(Base):
    """Forum category, usually a school subject."""

    __tablename__ = "forum_categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    slug: Mapped[str] = mapped_column(String(60), unique=True, index=True)
    description: Mapped[str] = mapped_column(String(200))
    icon: Mapped[str | None] = mapped_column(String(50))  # Icon class name
    color: Mapped[str] = mapped_column(String(7), default="#3B82F6")  # Hex color
    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    status: Mapped[ContentStatus] = mapped_column(
        content_status_type, default=ContentStatus.ACTIVE, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Count of active posts, populated per query
    post_count: Mapped[int | None] = query_expression()

    # Relationships
    created_by: Mapped["User"] = relationship(back_populates="forum_categories")
    posts: Mapped[list["ForumPost"]] = relationship(back_populates="category")

    @property
    def is_active(self) -> bool:
        return self.status is ContentStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<ForumCategory {self.name}>"


class ForumPost(Base):
    """Forum post (thread starter) with its replies and likes."""

    __tablename__ = "forum_posts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("forum_categories.id"), index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str] = mapped_column(Text)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Status
    status: Mapped[ContentStatus] = mapped_column(
        content_status_type, default=ContentStatus.ACTIVE, index=True
    )
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Stats
    views: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    category: Mapped["ForumCategory"] = relationship(back_populates="posts")
    author: Mapped["User"] = relationship(back_populates="forum_posts")
    replies: Mapped[list["ForumReply"]] = relationship(
        back_populates="post",
        order_by="ForumReply.id",
        cascade="all, delete-orphan",
    )
    likes: Mapped[list["ForumPostLike"]] = relationship(
        back_populates="post",
        order_by="ForumPostLike.id",
        cascade="all, delete-orphan",
    )

    @property
    def is_active(self) -> bool:
        return self.status is ContentStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<ForumPost {self.title[:30]}>"


class ForumReply(Base):
    """Reply appended to a post. Immutable once created."""

    __tablename__ = "forum_replies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("forum_posts.id"), index=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    # Relationships
    post: Mapped["ForumPost"] = relationship(back_populates="replies")
    author: Mapped["User"] = relationship(back_populates="forum_replies")
    likes: Mapped[list["ForumReplyLike"]] = relationship(
        back_populates="reply",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ForumReply {self.id} on post {self.post_id}>"


class ForumPostLike(Base):
    """A user's like on a post. One per (post, user)."""

    __tablename__ = "forum_post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("forum_posts.id"))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    post: Mapped["ForumPost"] = relationship(back_populates="likes")
    user: Mapped["User"] = relationship()


class ForumReplyLike(Base):
    """A user's like on a reply. One per (reply, user)."""

    __tablename__ = "forum_reply_likes"
    __table_args__ = (UniqueConstraint("reply_id", "user_id", name="uq_reply_like_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    reply_id: Mapped[int] = mapped_column(ForeignKey("forum_replies.id"))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    reply: Mapped["ForumReply"] = relationship(back_populates="likes")
