from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from expense_tracker.auth.security import (
    TokenIssuer,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

S1 = "unit-test-secret-0123456789abcdef-0123"


def test_hash_is_not_plaintext_and_verifies():
    h = hash_password("pw123456")
    assert h != "pw123456"
    assert h.startswith("$pbkdf2-sha256$")
    assert verify_password("pw123456", h)
    assert not verify_password("wrong", h)


def test_hash_is_salted():
    assert hash_password("same") != hash_password("same")


def test_verify_rejects_blank_and_garbage():
    assert not verify_password("", "whatever")
    assert not verify_password("pw", "")
    assert not verify_password("pw", "not-a-real-hash")


def test_hash_blank_password_raises():
    with pytest.raises(ValueError):
        hash_password("")


def test_token_round_trip_carries_user_id():
    tokens = TokenIssuer(secret=S1, expires_minutes=60)
    token = tokens.issue("abc123")
    assert tokens.verify(token) == "abc123"


def test_default_expiry_is_seven_days():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    token = create_access_token(secret=S1, user_id="u1", expires_minutes=10080, now=now)
    payload = jwt.decode(token, S1, algorithms=["HS256"], options={"verify_exp": False})
    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600


def test_token_from_other_secret_is_rejected():
    token = TokenIssuer(secret=S1 + "-other").issue("u1")
    with pytest.raises(jwt.InvalidSignatureError):
        TokenIssuer(secret=S1).verify(token)


def test_expired_token_is_rejected():
    past = datetime.now(timezone.utc) - timedelta(days=8)
    token = create_access_token(secret=S1, user_id="u1", expires_minutes=10080, now=past)
    with pytest.raises(jwt.ExpiredSignatureError):
        TokenIssuer(secret=S1).verify(token)


def test_token_without_sub_is_rejected():
    token = jwt.encode({"exp": 4102444800}, S1, algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_access_token(token=token, secret=S1)


def test_blank_secret_is_refused():
    with pytest.raises(ValueError):
        TokenIssuer(secret="")
