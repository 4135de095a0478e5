"""
Forum Module - School community discussions.

Features:
- Subject categories
- Posts with tags, replies, and likes
- Moderation tools (pin, lock, soft delete)
"""

from app.modules.forum.service import ForumService

__all__ = ["ForumService"]
