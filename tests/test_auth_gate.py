from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import TEST_SECRET, bearer, register
from expense_tracker.auth.security import TokenIssuer, create_access_token

GUARDED = [
    ("get", "/expenses", None),
    ("get", "/expenses/summary", None),
    ("post", "/expenses", {"title": "Coffee", "amount": 50}),
    ("put", "/expenses/abc", {"title": "Tea"}),
    ("delete", "/expenses/abc", None),
]


def _call(client, method, path, body, headers=None):
    kwargs = {"headers": headers or {}}
    if body is not None:
        kwargs["json"] = body
    return client.request(method.upper(), path, **kwargs)


@pytest.fixture()
def no_storage(monkeypatch):
    """Fail loudly if a handler opens a DB connection."""

    def _forbidden(*args, **kwargs):
        raise AssertionError("storage was touched")

    monkeypatch.setattr("expense_tracker.api.server.connect", _forbidden)


@pytest.mark.parametrize("method,path,body", GUARDED)
def test_missing_header_is_401_without_storage(client, no_storage, method, path, body):
    resp = _call(client, method, path, body)
    assert resp.status_code == 401
    assert resp.json() == {"message": "No token provided"}
    assert resp.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.parametrize("method,path,body", GUARDED)
def test_token_signed_with_other_secret_is_401(client, no_storage, method, path, body):
    token = TokenIssuer(secret="not-" + TEST_SECRET).issue("someone")
    resp = _call(client, method, path, body, headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


def test_expired_token_is_401(client, no_storage):
    past = datetime.now(timezone.utc) - timedelta(days=8)
    token = create_access_token(secret=TEST_SECRET, user_id="u1", expires_minutes=10080, now=past)
    resp = client.get("/expenses", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


@pytest.mark.parametrize(
    "header",
    [
        "Bearer garbage",
        "Bearer a.b.c",
        "Basic dXNlcjpwYXNz",
        "Bearer",
    ],
)
def test_unusable_authorization_header_is_401(client, no_storage, header):
    resp = client.get("/expenses", headers={"Authorization": header})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


def test_gate_trusts_signature_without_user_lookup(client):
    # A validly signed token for an id that was never registered still passes the gate;
    # the user simply owns no expenses.
    token = TokenIssuer(secret=TEST_SECRET).issue("never-registered")
    resp = client.get("/expenses", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.json() == []


def test_valid_token_passes(client):
    token = register(client, "a@x.com")
    assert client.get("/expenses", headers=bearer(token)).status_code == 200


@pytest.mark.parametrize(
    "method,path,content",
    [
        ("post", "/expenses", "not json"),
        ("put", "/expenses/abc", "{"),
        ("post", "/expenses", '{"title": "x", "amount": "lots"}'),
    ],
)
def test_missing_header_beats_bad_body(client, no_storage, method, path, content):
    resp = client.request(method.upper(), path, content=content, headers={"Content-Type": "application/json"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "No token provided"}
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_bad_token_beats_bad_body(client, no_storage):
    token = TokenIssuer(secret="not-" + TEST_SECRET).issue("someone")
    headers = {**bearer(token), "Content-Type": "application/json"}
    resp = client.post("/expenses", content="not json", headers=headers)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


def test_bad_body_with_valid_token_is_400(client):
    token = register(client, "a@x.com")
    headers = {**bearer(token), "Content-Type": "application/json"}
    resp = client.post("/expenses", content="not json", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid request data"


def test_unregistered_subject_can_create_and_list(client):
    token = TokenIssuer(secret=TEST_SECRET).issue("never-registered")
    resp = client.post("/expenses", json={"title": "Coffee", "amount": 3}, headers=bearer(token))
    assert resp.status_code == 200
    assert resp.json()["user_id"] == "never-registered"
    assert [e["title"] for e in client.get("/expenses", headers=bearer(token)).json()] == ["Coffee"]
