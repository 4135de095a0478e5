"""
Users Module - Accounts, authentication, and administration.
"""

from app.modules.users.service import UserService

__all__ = ["UserService"]
