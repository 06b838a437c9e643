# tests/test_task_routes.py

from __future__ import annotations

from models.task import TaskModel

from .conftest import API, auth


def create(client, token: str, **body) -> dict:
    body.setdefault("title", "Buy milk")
    resp = client.post(f"{API}/tasks", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_task_defaults(client, alice) -> None:
    task = create(client, alice["token"], title="  Buy milk  ")

    assert task["title"] == "Buy milk"
    assert task["description"] == ""
    assert task["completed"] is False
    assert task["due_date"] is None
    assert task["user_id"] == alice["id"]


def test_create_task_ignores_client_supplied_owner(client, alice, bob) -> None:
    task = create(client, alice["token"], user_id=bob["id"])
    assert task["user_id"] == alice["id"]


def test_create_task_with_due_date(client, alice) -> None:
    task = create(client, alice["token"], description="2%", due_date="2030-01-15T09:30:00")
    assert task["description"] == "2%"
    assert task["due_date"].startswith("2030-01-15T09:30:00")


def test_create_task_requires_title(client, alice) -> None:
    for body in ({}, {"title": "   "}, {"title": "x" * 256}):
        resp = client.post(f"{API}/tasks", json=body, headers=auth(alice["token"]))
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["param"] == "title"


def test_task_routes_require_a_token(client) -> None:
    for method, path in (
        ("GET", f"{API}/tasks"),
        ("POST", f"{API}/tasks"),
        ("GET", f"{API}/tasks/1"),
        ("PUT", f"{API}/tasks/1"),
        ("DELETE", f"{API}/tasks/1"),
    ):
        resp = client.request(method, path)
        assert resp.status_code == 401, (method, path)
        assert resp.json() == {"error": "Access token required"}


def test_list_returns_only_own_tasks_newest_first(client, alice, bob) -> None:
    first = create(client, alice["token"], title="first")
    second = create(client, alice["token"], title="second")
    create(client, bob["token"], title="bob's")

    resp = client.get(f"{API}/tasks", headers=auth(alice["token"]))

    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()] == [second["id"], first["id"]]


def test_get_task_enforces_ownership(client, alice, bob, admin) -> None:
    task = create(client, alice["token"])

    own = client.get(f"{API}/tasks/{task['id']}", headers=auth(alice["token"]))
    assert own.status_code == 200
    assert own.json()["id"] == task["id"]

    other = client.get(f"{API}/tasks/{task['id']}", headers=auth(bob["token"]))
    assert other.status_code == 403
    assert other.json() == {"error": "Not authorized"}

    as_admin = client.get(f"{API}/tasks/{task['id']}", headers=auth(admin["token"]))
    assert as_admin.status_code == 200


def test_missing_task_is_404(client, alice) -> None:
    for method in ("GET", "PUT", "DELETE"):
        resp = client.request(
            method, f"{API}/tasks/9999", json={"completed": True}, headers=auth(alice["token"])
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Task not found"}


def test_non_numeric_task_id_is_a_validation_error(client, alice) -> None:
    resp = client.get(f"{API}/tasks/abc", headers=auth(alice["token"]))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "task_id"


def test_partial_update_changes_only_given_fields(client, alice) -> None:
    task = create(client, alice["token"], description="two litres")

    resp = client.put(
        f"{API}/tasks/{task['id']}", json={"completed": True}, headers=auth(alice["token"])
    )

    assert resp.status_code == 200
    updated = resp.json()
    assert updated["completed"] is True
    assert updated["title"] == task["title"]
    assert updated["description"] == "two litres"


def test_update_can_clear_due_date(client, alice) -> None:
    task = create(client, alice["token"], due_date="2030-01-15T09:30:00")

    resp = client.put(
        f"{API}/tasks/{task['id']}", json={"due_date": None}, headers=auth(alice["token"])
    )

    assert resp.status_code == 200
    assert resp.json()["due_date"] is None


def test_empty_update_is_rejected(client, alice, db) -> None:
    task = create(client, alice["token"], description="two litres")

    for body in ({}, {"owner": 5}):
        resp = client.put(f"{API}/tasks/{task['id']}", json=body, headers=auth(alice["token"]))
        assert resp.status_code == 400
        assert resp.json() == {"error": "No fields to update"}

    stored = db.get(TaskModel, task["id"])
    assert stored.title == "Buy milk"
    assert stored.description == "two litres"
    assert stored.completed is False
    assert stored.user_id == alice["id"]


def test_update_rejects_null_title(client, alice) -> None:
    task = create(client, alice["token"])

    resp = client.put(
        f"{API}/tasks/{task['id']}", json={"title": None}, headers=auth(alice["token"])
    )

    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "title"


def test_update_and_delete_by_other_user_are_forbidden(client, alice, bob, db) -> None:
    task = create(client, alice["token"])

    put = client.put(
        f"{API}/tasks/{task['id']}", json={"title": "hijacked"}, headers=auth(bob["token"])
    )
    delete = client.delete(f"{API}/tasks/{task['id']}", headers=auth(bob["token"]))

    assert put.status_code == delete.status_code == 403
    stored = db.get(TaskModel, task["id"])
    assert stored is not None
    assert stored.title == "Buy milk"


def test_admin_can_update_and_delete_any_task(client, alice, admin) -> None:
    task = create(client, alice["token"])

    resp = client.put(
        f"{API}/tasks/{task['id']}", json={"completed": True}, headers=auth(admin["token"])
    )
    assert resp.status_code == 200
    assert resp.json()["user_id"] == alice["id"]

    resp = client.delete(f"{API}/tasks/{task['id']}", headers=auth(admin["token"]))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task deleted"}


def test_admin_list_shows_only_own_tasks(client, alice, admin) -> None:
    create(client, alice["token"])

    resp = client.get(f"{API}/tasks", headers=auth(admin["token"]))

    assert resp.status_code == 200
    assert resp.json() == []


def test_delete_then_get_is_404(client, alice) -> None:
    task = create(client, alice["token"])

    resp = client.delete(f"{API}/tasks/{task['id']}", headers=auth(alice["token"]))
    assert resp.status_code == 200

    resp = client.get(f"{API}/tasks/{task['id']}", headers=auth(alice["token"]))
    assert resp.status_code == 404


def test_create_with_token_of_deleted_user_is_401(client, alice, admin) -> None:
    client.delete(f"{API}/users/{alice['id']}", headers=auth(admin["token"]))

    resp = client.post(f"{API}/tasks", json={"title": "ghost"}, headers=auth(alice["token"]))

    assert resp.status_code == 401
