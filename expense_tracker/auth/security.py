from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


_JWT_ALG = "HS256"
DEFAULT_PASSWORD_ROUNDS = 29000


def make_password_context(rounds: int = DEFAULT_PASSWORD_ROUNDS) -> CryptContext:
    return CryptContext(
        schemes=["pbkdf2_sha256"],
        deprecated="auto",
        pbkdf2_sha256__rounds=max(1000, int(rounds)),
    )


_default_pwd = make_password_context()


def _ctx(pwd: CryptContext | None) -> CryptContext:
    return pwd if pwd is not None else _default_pwd


def hash_password(password: str, *, pwd: CryptContext | None = None) -> str:
    if not password:
        raise ValueError("password_blank")
    return _ctx(pwd).hash(password)


def verify_password(password: str, password_hash: str, *, pwd: CryptContext | None = None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _ctx(pwd).verify(password, password_hash)
    except ValueError:
        # Unrecognized / corrupt hash string.
        return False


def create_access_token(
    *,
    secret: str,
    user_id: str,
    expires_minutes: int,
    now: datetime | None = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=max(1, int(expires_minutes)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(token, secret, algorithms=[_JWT_ALG], options={"require": ["exp", "sub"]})


@dataclass(frozen=True)
class TokenIssuer:
    """Signs and verifies bearer tokens with a secret fixed at construction.

    Built once from Config when the app is created and kept on `app.state`.
    Verification is purely signature + expiry; no store lookup.
    """

    secret: str
    expires_minutes: int = 10080

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("jwt_secret_blank")

    def issue(self, user_id: str) -> str:
        return create_access_token(
            secret=self.secret,
            user_id=user_id,
            expires_minutes=self.expires_minutes,
        )

    def verify(self, token: str) -> str:
        """Return the embedded user id.

        Raises jwt.InvalidTokenError (incl. ExpiredSignatureError) on a bad token.
        """
        payload = decode_access_token(token=token, secret=self.secret)
        sub = payload.get("sub")
        if not sub or not isinstance(sub, str):
            raise jwt.InvalidTokenError("token_missing_sub")
        return sub
