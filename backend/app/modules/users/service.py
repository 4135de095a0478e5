"""
User Service - Registration, authentication, profiles, and administration.
"""

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit_or_raise
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.core.permissions import require_admin
from app.core.security import hash_password, verify_password
from app.models.user import User, UserRole

INVALID_CREDENTIALS = "Invalid credentials"


def parse_role(value: str | None) -> UserRole:
    """Parse a role name case-insensitively, defaulting to STUDENT."""
    if not value:
        return UserRole.STUDENT
    try:
        return UserRole(value.strip().upper())
    except ValueError:
        allowed = ", ".join(role.value for role in UserRole)
        raise ValidationError.for_field("role", f"Role must be one of: {allowed}") from None


def validate_role_fields(role: UserRole, grade: str | None, subject: str | None) -> None:
    """
    Check role-conditional profile fields.

    Raises:
        ValidationError: STUDENT without grade, or TEACHER without subject
    """
    if role is UserRole.STUDENT and not grade:
        raise ValidationError.for_field("grade", "Grade is required for students")
    if role is UserRole.TEACHER and not subject:
        raise ValidationError.for_field("subject", "Subject is required for teachers")


class UserService:
    """
    Service for user accounts.

    Usage:
        users = UserService(db_session)
        user = await users.authenticate("ada@school.edu", "secret1")
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize user service with database session."""
        self.db = db

    # ==================== Lookups ====================

    async def get_user(self, user_id: int) -> User | None:
        """Get user by ID."""
        return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive)."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        result = await self.db.execute(select(User).where(User.username == username.strip()))
        return result.scalar_one_or_none()

    # ==================== Registration & Login ====================

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str | None = None,
        grade: str | None = None,
        subject: str | None = None,
    ) -> User:
        """
        Register a new user.

        Role-conditional fields are validated before any lookup; email and
        username uniqueness are then checked. The unique constraints decide
        races between concurrent registrations.

        Raises:
            ValidationError: Invalid role or missing grade/subject
            ConflictError: Email or username already taken
        """
        user_role = parse_role(role)
        validate_role_fields(user_role, grade, subject)

        email = email.strip().lower()
        username = username.strip()

        if await self.get_user_by_email(email):
            raise ConflictError("User already exists")
        if await self.get_user_by_username(username):
            raise ConflictError("Username already taken")

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=user_role,
            grade=grade,
            subject=subject,
            is_active=True,
        )
        self.db.add(user)
        await commit_or_raise(self.db, "User already exists")

        logger.info(f"Registered user {user.id} ({user.username}) as {user_role.value}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Verify credentials and record the login time.

        Unknown email and wrong password fail identically.

        Raises:
            ValidationError: Invalid credentials
            ForbiddenError: Account deactivated (only after a correct password)
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise ValidationError(INVALID_CREDENTIALS)

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        user.last_login = datetime.now(timezone.utc)
        await commit_or_raise(self.db)
        return user

    # ==================== Profile ====================

    async def update_profile(
        self,
        user: User,
        first_name: str | None = None,
        last_name: str | None = None,
        grade: str | None = None,
        subject: str | None = None,
        bio: str | None = None,
        avatar_url: str | None = None,
        password: str | None = None,
    ) -> User:
        """Update own profile; a new password is hashed with a fresh salt."""
        validate_role_fields(
            user.role,
            grade if grade is not None else user.grade,
            subject if subject is not None else user.subject,
        )

        if first_name:
            user.first_name = first_name.strip()
        if last_name:
            user.last_name = last_name.strip()
        if grade is not None:
            user.grade = grade
        if subject is not None:
            user.subject = subject
        if bio is not None:
            user.bio = bio
        if avatar_url is not None:
            user.avatar_url = avatar_url
        if password:
            user.hashed_password = hash_password(password)
            logger.info(f"Password changed for user {user.id}")

        await commit_or_raise(self.db)
        return user

    # ==================== Administration ====================

    async def get_users(
        self,
        actor: User,
        page: int = 1,
        limit: int = 20,
        role: UserRole | None = None,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[User], int]:
        """List users with pagination (admins only)."""
        require_admin(actor)

        filters = []
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)
        if search:
            filters.append(
                or_(
                    User.username.icontains(search, autoescape=True),
                    User.email.icontains(search, autoescape=True),
                    User.first_name.icontains(search, autoescape=True),
                    User.last_name.icontains(search, autoescape=True),
                )
            )

        total = await self.db.scalar(select(func.count(User.id)).where(*filters))
        result = await self.db.execute(
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def set_active(self, actor: User, user_id: int, is_active: bool) -> User:
        """Activate or deactivate an account (admins only)."""
        require_admin(actor)

        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.id == actor.id and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        user.is_active = is_active
        await commit_or_raise(self.db)

        logger.info(
            f"User {user_id} {'activated' if is_active else 'deactivated'} by admin {actor.id}"
        )
        return user
