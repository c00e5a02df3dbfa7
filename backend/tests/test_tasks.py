"""Tests for the /api/tasks routes."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from conftest import register
from taskmanager.core.database import get_db


def _create(client: TestClient, headers: dict, **fields) -> dict:
    response = client.post("/api/tasks", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_list_is_empty_initially(client: TestClient, auth_headers: dict) -> None:
    response = client.get("/api/tasks", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == []


def test_create_task_echoes_title(client: TestClient, auth_headers: dict) -> None:
    response = client.post(
        "/api/tasks",
        json={"title": "New Task", "description": "Testing", "status": "To Do"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "New Task"
    assert body["description"] == "Testing"
    assert body["status"] == "To Do"
    assert isinstance(body["id"], int)
    assert body["created_at"]
    assert body["updated_at"]


def test_task_timestamps_carry_utc_offset(client: TestClient, auth_headers: dict) -> None:
    created = _create(client, auth_headers, title="Timestamped")
    listed = client.get("/api/tasks", headers=auth_headers).json()[0]

    for body in (created, listed):
        assert body["created_at"].endswith("+00:00")
        assert body["updated_at"].endswith("+00:00")


def test_create_task_defaults(client: TestClient, auth_headers: dict) -> None:
    body = _create(client, auth_headers, title="Only a title")

    assert body["status"] == "To Do"
    assert body["description"] is None


def test_create_task_without_title(client: TestClient, auth_headers: dict) -> None:
    response = client.post("/api/tasks", json={"description": "No title"}, headers=auth_headers)

    assert response.status_code == 400


def test_create_task_with_empty_title(client: TestClient, auth_headers: dict) -> None:
    response = client.post("/api/tasks", json={"title": ""}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"message": "Title is required"}


def test_create_task_with_blank_title(client: TestClient, auth_headers: dict) -> None:
    response = client.post("/api/tasks", json={"title": "   "}, headers=auth_headers)

    assert response.status_code == 400


def test_create_task_with_unknown_status(client: TestClient, auth_headers: dict) -> None:
    response = client.post(
        "/api/tasks", json={"title": "Bad status", "status": "Blocked"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


def test_list_returns_newest_first(client: TestClient, auth_headers: dict) -> None:
    first = _create(client, auth_headers, title="Task 1", description="Test task", status="To Do")
    second = _create(client, auth_headers, title="Task 2", description="Another task", status="Done")

    response = client.get("/api/tasks", headers=auth_headers)

    assert response.status_code == 200
    assert [task["id"] for task in response.json()] == [second["id"], first["id"]]


def test_update_task_title_only(client: TestClient, auth_headers: dict) -> None:
    task = _create(
        client, auth_headers, title="Old Title", description="keep me", status="In Progress"
    )

    response = client.put(f"/api/tasks/{task['id']}", json={"title": "X"}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "X"
    assert body["description"] == "keep me"
    assert body["status"] == "In Progress"

    stored = client.get("/api/tasks", headers=auth_headers).json()
    assert stored[0]["title"] == "X"
    assert stored[0]["description"] == "keep me"


def test_update_task_several_fields(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="Old Title", description="")

    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Updated Title", "description": "Updated description", "status": "Done"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Updated Title"
    assert body["description"] == "Updated description"
    assert body["status"] == "Done"


def test_update_task_can_clear_description(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="Has description", description="temporary")

    response = client.put(
        f"/api/tasks/{task['id']}", json={"description": None}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["description"] is None
    assert response.json()["title"] == "Has description"


def test_update_nonexistent_task(client: TestClient, auth_headers: dict) -> None:
    response = client.put("/api/tasks/9999", json={"title": "New"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"message": "Task not found"}


def test_update_task_with_empty_title(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="Keep")

    response = client.put(f"/api/tasks/{task['id']}", json={"title": ""}, headers=auth_headers)

    assert response.status_code == 400
    assert client.get("/api/tasks", headers=auth_headers).json()[0]["title"] == "Keep"


def test_update_task_with_unknown_status(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="Status check")

    response = client.put(
        f"/api/tasks/{task['id']}", json={"status": "Archived"}, headers=auth_headers
    )

    assert response.status_code == 400


def test_update_task_with_non_integer_id(client: TestClient, auth_headers: dict) -> None:
    response = client.put("/api/tasks/not-an-id", json={"title": "New"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"message": "Task not found"}


@pytest.mark.parametrize(
    "task_id",
    ["64b7f0c2a1b2c3d4e5f60718", "9999999999999999999999999", "0", "-1", "1.5"],
)
def test_unknown_id_shapes_are_not_found(client: TestClient, auth_headers: dict, task_id: str) -> None:
    _create(client, auth_headers, title="Existing")

    put_response = client.put(f"/api/tasks/{task_id}", json={"title": "New"}, headers=auth_headers)
    delete_response = client.delete(f"/api/tasks/{task_id}", headers=auth_headers)

    assert put_response.status_code == 404
    assert put_response.json() == {"message": "Task not found"}
    assert delete_response.status_code == 404
    assert delete_response.json() == {"message": "Task not found"}
    assert [t["title"] for t in client.get("/api/tasks", headers=auth_headers).json()] == ["Existing"]


def test_delete_task(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="To Delete")
    other = _create(client, auth_headers, title="To Keep")

    response = client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Task deleted"}
    remaining = client.get("/api/tasks", headers=auth_headers).json()
    assert [t["id"] for t in remaining] == [other["id"]]


def test_delete_nonexistent_task(client: TestClient, auth_headers: dict) -> None:
    response = client.delete("/api/tasks/9999", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"message": "Task not found"}


def test_delete_twice(client: TestClient, auth_headers: dict) -> None:
    task = _create(client, auth_headers, title="Once")

    assert client.delete(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 404


def test_tasks_are_shared_between_users(client: TestClient, auth_headers: dict) -> None:
    _create(client, auth_headers, title="Created by first user")
    other = register(client, "second-user", "another-password")

    response = client.get("/api/tasks", headers={"Authorization": f"Bearer {other['token']}"})

    assert [t["title"] for t in response.json()] == ["Created by first user"]


def test_list_store_failure_returns_500(app: FastAPI, client: TestClient, auth_headers: dict) -> None:
    # The gate shares the overridden session, so its user lookup is stubbed too
    failing_db = MagicMock()
    failing_db.query.return_value.order_by.return_value.all.side_effect = SQLAlchemyError("db down")
    failing_db.query.return_value.filter.return_value.first.return_value = SimpleNamespace(
        id=1, username="testuser", created_at=None
    )
    app.dependency_overrides[get_db] = lambda: failing_db

    response = client.get("/api/tasks", headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Error fetching tasks"
    assert "db down" in body["error"]
