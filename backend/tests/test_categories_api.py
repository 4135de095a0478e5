from typing import Any

from fastapi.testclient import TestClient

from conftest import API, auth_header, create_category, create_post, register_user

Actor = tuple[str, dict[str, Any]]


def test_teacher_creates_category(client: TestClient, teacher: Actor) -> None:
    category = create_category(client, teacher[0], name="Computer Science")

    assert category["name"] == "Computer Science"
    assert category["slug"] == "computer-science"
    assert category["color"] == "#FF5733"
    assert category["isActive"] is True
    assert category["postCount"] == 0
    assert category["createdBy"]["id"] == teacher[1]["id"]
    assert category["createdBy"]["fullName"] == "Teacher Tester"


def test_default_color(client: TestClient, teacher: Actor) -> None:
    response = client.post(
        f"{API}/categories",
        json={"name": "History", "description": "Dates and events"},
        headers=auth_header(teacher[0]),
    )
    assert response.json()["category"]["color"] == "#3B82F6"


def test_student_cannot_manage_categories(
    client: TestClient, student: Actor, category: dict[str, Any]
) -> None:
    headers = auth_header(student[0])

    created = client.post(
        f"{API}/categories", json={"name": "Gaming", "description": "Off topic"}, headers=headers
    )
    updated = client.put(f"{API}/categories/{category['id']}", json={"name": "Maths"}, headers=headers)
    deleted = client.delete(f"{API}/categories/{category['id']}", headers=headers)

    assert [created.status_code, updated.status_code, deleted.status_code] == [403, 403, 403]


def test_category_mutations_require_auth(client: TestClient) -> None:
    response = client.post(f"{API}/categories", json={"name": "Music", "description": "Notes"})
    assert response.status_code == 401


def test_invalid_color_rejected(client: TestClient, teacher: Actor) -> None:
    response = client.post(
        f"{API}/categories",
        json={"name": "Art", "description": "Painting", "color": "red"},
        headers=auth_header(teacher[0]),
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "color"


def test_duplicate_category_rejected(client: TestClient, teacher: Actor, category: dict[str, Any]) -> None:
    response = client.post(
        f"{API}/categories",
        json={"name": "Math", "description": "Again"},
        headers=auth_header(teacher[0]),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Category already exists"}
    assert len(client.get(f"{API}/categories").json()["categories"]) == 1


def test_rename_to_existing_name_rejected(client: TestClient, teacher: Actor, category: dict[str, Any]) -> None:
    science = create_category(client, teacher[0], name="Science")

    response = client.put(
        f"{API}/categories/{science['id']}",
        json={"name": "Math"},
        headers=auth_header(teacher[0]),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Category name already exists"}


def test_update_category(client: TestClient, category: dict[str, Any]) -> None:
    admin_token, _ = register_user(client, "principal", role="ADMIN")

    response = client.put(
        f"{API}/categories/{category['id']}",
        json={"name": "Mathematics", "color": "#00AA00"},
        headers=auth_header(admin_token),
    )

    assert response.status_code == 200
    updated = response.json()["category"]
    assert updated["name"] == "Mathematics"
    assert updated["slug"] == "mathematics"
    assert updated["color"] == "#00AA00"
    assert updated["description"] == category["description"]


def test_post_count_ignores_deleted_posts(
    client: TestClient, student: Actor, category: dict[str, Any]
) -> None:
    create_post(client, student[0], category["id"], title="First question")
    doomed = create_post(client, student[0], category["id"], title="Second question")
    client.delete(f"{API}/posts/{doomed['id']}", headers=auth_header(student[0]))

    detail = client.get(f"{API}/categories/{category['id']}").json()["category"]
    listing = client.get(f"{API}/categories").json()["categories"]

    assert detail["postCount"] == 1
    assert listing[0]["postCount"] == 1


def test_soft_deleted_category(
    client: TestClient, teacher: Actor, student: Actor, category: dict[str, Any]
) -> None:
    post = create_post(client, student[0], category["id"])

    response = client.delete(f"{API}/categories/{category['id']}", headers=auth_header(teacher[0]))
    assert response.json() == {"message": "Category deleted successfully"}

    assert client.get(f"{API}/categories").json()["categories"] == []
    assert client.get(f"{API}/categories/{category['id']}").status_code == 404

    # Existing posts stay readable, new ones are refused
    assert client.get(f"{API}/posts/{post['id']}").status_code == 200
    refused = client.post(
        f"{API}/posts",
        json={"title": "Late question", "content": "Is this category gone?", "category": category["id"]},
        headers=auth_header(student[0]),
    )
    assert refused.status_code == 400
    assert refused.json() == {"error": "Invalid category"}


def test_deleted_category_name_stays_reserved(
    client: TestClient, teacher: Actor, category: dict[str, Any]
) -> None:
    client.delete(f"{API}/categories/{category['id']}", headers=auth_header(teacher[0]))

    response = client.post(
        f"{API}/categories",
        json={"name": "Math", "description": "Second attempt"},
        headers=auth_header(teacher[0]),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Category already exists"}


def test_categories_listed_newest_first(client: TestClient, teacher: Actor) -> None:
    create_category(client, teacher[0], name="Biology")
    create_category(client, teacher[0], name="Chemistry")

    names = [c["name"] for c in client.get(f"{API}/categories").json()["categories"]]
    assert names == ["Chemistry", "Biology"]
