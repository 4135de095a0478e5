import pytest

from app.core.exceptions import ForbiddenError
from app.core.permissions import (
    can_manage_users,
    can_moderate,
    can_modify,
    is_moderator,
    require_admin,
    require_moderator,
    require_modify,
)
from app.models.user import User, UserRole


@pytest.mark.parametrize("role", list(UserRole))
def test_owner_can_always_modify_own_content(role: UserRole) -> None:
    assert can_modify(role, 7, 7)


def test_student_cannot_modify_others_content() -> None:
    assert not can_modify(UserRole.STUDENT, 7, 8)


@pytest.mark.parametrize("role", [UserRole.TEACHER, UserRole.ADMIN])
def test_moderators_modify_regardless_of_ownership(role: UserRole) -> None:
    assert can_modify(role, 7, 8)


@pytest.mark.parametrize(
    ("role", "expected"),
    [(UserRole.STUDENT, False), (UserRole.TEACHER, True), (UserRole.ADMIN, True)],
)
def test_moderation_rights(role: UserRole, expected: bool) -> None:
    assert is_moderator(role) is expected
    assert can_moderate(role) is expected


@pytest.mark.parametrize(
    ("role", "expected"),
    [(UserRole.STUDENT, False), (UserRole.TEACHER, False), (UserRole.ADMIN, True)],
)
def test_only_admins_manage_users(role: UserRole, expected: bool) -> None:
    assert can_manage_users(role) is expected


def test_role_parses_from_stored_string() -> None:
    assert can_moderate(UserRole("TEACHER"))


def test_require_helpers_raise_forbidden() -> None:
    student = User(id=1, role=UserRole.STUDENT)
    teacher = User(id=2, role=UserRole.TEACHER)

    require_modify(student, 1, "nope")
    with pytest.raises(ForbiddenError, match="nope"):
        require_modify(student, 2, "nope")

    require_moderator(teacher)
    with pytest.raises(ForbiddenError):
        require_moderator(student)
    with pytest.raises(ForbiddenError):
        require_admin(teacher)
