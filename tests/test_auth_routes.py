# tests/test_auth_routes.py

from __future__ import annotations

from models.user import UserModel

from .conftest import API, PASSWORD, auth


def test_register_login_and_empty_task_list(client) -> None:
    resp = client.post(
        f"{API}/auth/register",
        json={"username": "al", "email": "a@x.com", "password": "longpass1"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered"
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["role"] == "USER"
    assert "password_hash" not in body["user"]

    resp = client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "longpass1"})
    assert resp.status_code == 200
    token = resp.json()["token"]
    assert resp.json()["user"]["last_login"] is not None

    resp = client.get(f"{API}/tasks", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == []


def test_register_ignores_client_supplied_role(client) -> None:
    resp = client.post(
        f"{API}/auth/register",
        json={"username": "mallory", "email": "m@x.com", "password": PASSWORD, "role": "ADMIN"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "USER"


def test_duplicate_email_is_rejected_without_new_row(client, register, db) -> None:
    register("alice", "alice@example.com")

    for email in ("alice@example.com", "  ALICE@example.com "):
        resp = client.post(
            f"{API}/auth/register",
            json={"username": "alice2", "email": email, "password": PASSWORD},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Email already registered"}

    assert db.query(UserModel).count() == 1


def test_register_validation_errors_name_the_fields(client) -> None:
    resp = client.post(
        f"{API}/auth/register",
        json={"username": "   ", "email": "not-an-email", "password": "short"},
    )
    assert resp.status_code == 400
    params = {e["param"] for e in resp.json()["errors"]}
    assert params == {"username", "email", "password"}


def test_wrong_password_and_unknown_email_look_the_same(client, register) -> None:
    register("alice", "alice@example.com")

    wrong_password = client.post(
        f"{API}/auth/login", json={"email": "alice@example.com", "password": "wrongpass1"}
    )
    unknown_email = client.post(
        f"{API}/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}


def test_login_validates_shape(client) -> None:
    resp = client.post(f"{API}/auth/login", json={"email": "alice@example.com"})
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "password"


def test_login_records_last_login(client, register, login, db) -> None:
    user = register("alice", "alice@example.com")
    assert db.get(UserModel, user["id"]).last_login is None

    login("alice@example.com")

    db.expire_all()
    assert db.get(UserModel, user["id"]).last_login is not None


def test_me_requires_a_valid_token(client, alice) -> None:
    resp = client.get(f"{API}/auth/me", headers=auth(alice["token"]))
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "alice@example.com"

    missing = client.get(f"{API}/auth/me")
    assert missing.status_code == 401
    assert missing.json() == {"error": "Access token required"}

    forged = client.get(f"{API}/auth/me", headers=auth("not.a.token"))
    assert forged.status_code == 401
    assert forged.json() == {"error": "Invalid or expired token"}


def test_me_rejects_token_of_deleted_user(client, alice, admin) -> None:
    resp = client.delete(f"{API}/users/{alice['id']}", headers=auth(admin["token"]))
    assert resp.status_code == 200

    resp = client.get(f"{API}/auth/me", headers=auth(alice["token"]))
    assert resp.status_code == 401


def test_logout_is_stateless(client) -> None:
    resp = client.post(f"{API}/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out successfully"}


def test_long_password_registers_and_logs_in(client, register, login) -> None:
    password = "p" * 200
    register("longpw", "longpw@example.com", password)

    assert login("longpw@example.com", password)
