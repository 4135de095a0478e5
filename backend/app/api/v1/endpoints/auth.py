"""
Auth API Endpoints.

Registration, login, and current-user lookup.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import EmailStr, Field, StringConstraints, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.serializers import CamelModel, user_auth, user_profile
from app.core.database import get_db
from app.core.security import check_password_length, create_access_token
from app.models.user import User
from app.modules.users import UserService

router = APIRouter()

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


# ==================== Schemas ====================


class RegisterRequest(CamelModel):
    """Register new user."""

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=30)]
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: Name
    last_name: Name
    role: str | None = None
    grade: str | None = Field(default=None, max_length=20)
    subject: str | None = Field(default=None, max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class LoginRequest(CamelModel):
    """Login with email and password."""

    email: EmailStr
    password: str = Field(min_length=1)


# ==================== Routes ====================


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Register a new user and return an access token."""
    users = UserService(db)
    user = await users.register(
        username=request.username,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        grade=request.grade,
        subject=request.subject,
    )

    return {
        "message": "User registered successfully",
        "token": create_access_token(user.id),
        "user": user_auth(user),
    }


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Exchange credentials for an access token."""
    users = UserService(db)
    user = await users.authenticate(request.email, request.password)

    return {
        "message": "Login successful",
        "token": create_access_token(user.id),
        "user": user_auth(user),
    }


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Get the authenticated user's profile."""
    return {"user": user_profile(current_user, private=True)}
