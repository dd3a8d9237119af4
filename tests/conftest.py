from __future__ import annotations

import pathlib
import sys
from typing import Dict

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_tracker.api.server import create_app
from expense_tracker.auth.crud import create_user
from expense_tracker.auth.security import make_password_context
from expense_tracker.config import Config
from expense_tracker.db import connect, init_db

TEST_SECRET = "test-secret-0123456789abcdef-0123456789"


@pytest.fixture()
def cfg(tmp_path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "expenses.sqlite"),
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_TOKEN_EXPIRE_MINUTES=10080,
        # Keep hashing fast in tests.
        AUTH_PASSWORD_ROUNDS=1000,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture()
def app(cfg):
    return create_app(cfg)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def conn(cfg):
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as c:
        yield c


@pytest.fixture()
def users(conn) -> Dict[str, str]:
    """Two stored users, returned as {"a": user_id, "b": user_id}."""
    pwd = make_password_context(1000)
    a = create_user(conn, email="a@x.com", password="pw123456", name="A", pwd=pwd)
    b = create_user(conn, email="b@x.com", password="pw654321", name="B", pwd=pwd)
    return {"a": a["id"], "b": b["id"]}


def register(client: TestClient, email: str, password: str = "pw123456", name: str = "Test") -> str:
    resp = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
