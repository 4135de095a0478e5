import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-the-forum-suite")

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app

API = "/api"


@pytest.fixture
def client(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'forum.db'}")
    get_settings.cache_clear()

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register_user(
    client: TestClient,
    username: str,
    role: str = "STUDENT",
    **overrides: Any,
) -> tuple[str, dict[str, Any]]:
    payload: dict[str, Any] = {
        "username": username,
        "email": f"{username}@school.edu",
        "password": "secret123",
        "firstName": username.capitalize(),
        "lastName": "Tester",
        "role": role,
    }
    if role == "STUDENT":
        payload["grade"] = "10"
    elif role == "TEACHER":
        payload["subject"] = "Math"
    payload.update(overrides)

    response = client.post(f"{API}/auth/register", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return body["token"], body["user"]


def create_category(client: TestClient, token: str, name: str = "Math") -> dict[str, Any]:
    response = client.post(
        f"{API}/categories",
        json={"name": name, "description": f"{name} discussions", "color": "#FF5733"},
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return response.json()["category"]


def create_post(
    client: TestClient,
    token: str,
    category_id: int,
    title: str = "Help with homework",
    content: str = "Can someone explain question four?",
    tags: list[str] | None = None,
) -> dict[str, Any]:
    response = client.post(
        f"{API}/posts",
        json={"title": title, "content": content, "category": category_id, "tags": tags or []},
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return response.json()["post"]


@pytest.fixture
def teacher(client: TestClient) -> tuple[str, dict[str, Any]]:
    return register_user(client, "teacher", role="TEACHER")


@pytest.fixture
def student(client: TestClient) -> tuple[str, dict[str, Any]]:
    return register_user(client, "alice")


@pytest.fixture
def category(client: TestClient, teacher: tuple[str, dict[str, Any]]) -> dict[str, Any]:
    return create_category(client, teacher[0])
