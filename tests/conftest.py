# tests/conftest.py

from __future__ import annotations

import os

# Configure the app before anything imports config.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_DIR"] = ""

from typing import Callable  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import app  # noqa: E402
from core.cache import ResponseCache, set_response_cache  # noqa: E402
from core.database import SessionLocal, engine, init_db  # noqa: E402
from core.rate_limit import rate_limiter  # noqa: E402
from models.base import Base  # noqa: E402
from models.user import UserModel  # noqa: E402

from .fakes import FakeRedis  # noqa: E402

API = "/api/v1"
PASSWORD = "longpass1"


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture(autouse=True)
def _isolated_app(fake_redis: FakeRedis):
    """
    Fresh tables, an empty rate-limit window and an in-memory cache per test.

    The SQLite database lives in memory on a single shared connection, so
    dropping the tables at teardown is enough to isolate tests.
    """
    init_db()
    rate_limiter.reset()
    set_response_cache(ResponseCache(fake_redis, ttl_seconds=60))
    yield
    set_response_cache(None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register(client: TestClient) -> Callable[..., dict]:
    def _register(username: str, email: str, password: str = PASSWORD) -> dict:
        resp = client.post(
            f"{API}/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    return _register


@pytest.fixture()
def login(client: TestClient) -> Callable[..., str]:
    def _login(email: str, password: str = PASSWORD) -> str:
        resp = client.post(f"{API}/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _login


@pytest.fixture()
def alice(register, login) -> dict:
    user = register("alice", "alice@example.com")
    return {**user, "token": login("alice@example.com")}


@pytest.fixture()
def bob(register, login) -> dict:
    user = register("bob", "bob@example.com")
    return {**user, "token": login("bob@example.com")}


@pytest.fixture()
def admin(register, login) -> dict:
    """A registered user promoted to ADMIN directly in the database."""
    user = register("root", "root@example.com")
    session = SessionLocal()
    try:
        model = session.get(UserModel, user["id"])
        model.role = "ADMIN"
        session.commit()
    finally:
        session.close()
    return {**user, "role": "ADMIN", "token": login("root@example.com")}
