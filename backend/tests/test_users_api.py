from typing import Any

import pytest
from fastapi.testclient import TestClient

from conftest import API, auth_header, register_user

Actor = tuple[str, dict[str, Any]]


@pytest.fixture
def admin(client: TestClient) -> Actor:
    return register_user(client, "principal", role="ADMIN")


def test_get_own_profile(client: TestClient, student: Actor) -> None:
    response = client.get(f"{API}/users/me", headers=auth_header(student[0]))

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "alice"
    assert user["email"] == "alice@school.edu"
    assert user["grade"] == "10"
    assert "hashedPassword" not in user


def test_update_profile(client: TestClient, student: Actor) -> None:
    response = client.put(
        f"{API}/users/me",
        json={"firstName": "Alicia", "grade": "11", "bio": "Likes chemistry"},
        headers=auth_header(student[0]),
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["fullName"] == "Alicia Tester"
    assert user["grade"] == "11"
    assert user["bio"] == "Likes chemistry"


def test_student_cannot_clear_grade(client: TestClient, student: Actor) -> None:
    response = client.put(f"{API}/users/me", json={"grade": ""}, headers=auth_header(student[0]))

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "grade"


def test_password_change_rehashes(client: TestClient, student: Actor) -> None:
    client.put(f"{API}/users/me", json={"password": "new-secret"}, headers=auth_header(student[0]))

    old = client.post(f"{API}/auth/login", json={"email": "alice@school.edu", "password": "secret123"})
    new = client.post(f"{API}/auth/login", json={"email": "alice@school.edu", "password": "new-secret"})

    assert old.status_code == 400
    assert new.status_code == 200


def test_public_profile_hides_email(client: TestClient, student: Actor, teacher: Actor) -> None:
    response = client.get(f"{API}/users/{teacher[1]['id']}", headers=auth_header(student[0]))

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "teacher"
    assert "email" not in user


def test_admin_lists_users(client: TestClient, admin: Actor, student: Actor, teacher: Actor) -> None:
    response = client.get(f"{API}/users", params={"role": "TEACHER"}, headers=auth_header(admin[0]))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["users"][0]["username"] == "teacher"


def test_admin_user_search(client: TestClient, admin: Actor, student: Actor) -> None:
    response = client.get(f"{API}/users", params={"search": "ALI"}, headers=auth_header(admin[0]))
    assert [u["username"] for u in response.json()["users"]] == ["alice"]


@pytest.mark.parametrize("fixture", ["student", "teacher"])
def test_non_admins_cannot_list_users(client: TestClient, fixture: str, request: pytest.FixtureRequest) -> None:
    token, _ = request.getfixturevalue(fixture)
    response = client.get(f"{API}/users", headers=auth_header(token))
    assert response.status_code == 403


def test_deactivated_user_locked_out(client: TestClient, admin: Actor, student: Actor) -> None:
    response = client.patch(
        f"{API}/users/{student[1]['id']}/status",
        json={"isActive": False},
        headers=auth_header(admin[0]),
    )
    assert response.status_code == 200
    assert response.json()["user"]["isActive"] is False

    # Existing tokens stop working
    assert client.get(f"{API}/users/me", headers=auth_header(student[0])).status_code == 401

    login = client.post(f"{API}/auth/login", json={"email": "alice@school.edu", "password": "secret123"})
    assert login.status_code == 403
    assert login.json() == {"error": "Account is deactivated"}

    # Wrong password still looks like any other failure
    wrong = client.post(f"{API}/auth/login", json={"email": "alice@school.edu", "password": "nope-nope"})
    assert wrong.json() == {"error": "Invalid credentials"}


def test_reactivate_user(client: TestClient, admin: Actor, student: Actor) -> None:
    url = f"{API}/users/{student[1]['id']}/status"
    client.patch(url, json={"isActive": False}, headers=auth_header(admin[0]))
    client.patch(url, json={"isActive": True}, headers=auth_header(admin[0]))

    login = client.post(f"{API}/auth/login", json={"email": "alice@school.edu", "password": "secret123"})
    assert login.status_code == 200


def test_admin_cannot_deactivate_self(client: TestClient, admin: Actor) -> None:
    response = client.patch(
        f"{API}/users/{admin[1]['id']}/status",
        json={"isActive": False},
        headers=auth_header(admin[0]),
    )
    assert response.status_code == 400


def test_teacher_cannot_change_status(client: TestClient, teacher: Actor, student: Actor) -> None:
    response = client.patch(
        f"{API}/users/{student[1]['id']}/status",
        json={"isActive": False},
        headers=auth_header(teacher[0]),
    )
    assert response.status_code == 403


def test_status_of_missing_user(client: TestClient, admin: Actor) -> None:
    response = client.patch(
        f"{API}/users/9999/status", json={"isActive": False}, headers=auth_header(admin[0])
    )
    assert response.status_code == 404
