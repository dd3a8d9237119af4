"""Registration and login.

Both return `{"token": ..., "user": {id, name, email}}` and raise the typed
errors from `expense_tracker.errors`; the route layer only adds the message.
"""

from __future__ import annotations

from typing import Any, Dict

from passlib.context import CryptContext

from expense_tracker.errors import Conflict, InvalidCredentials, InvalidInput

from .crud import create_user, public_user, verify_user_credentials
from .security import TokenIssuer


def _require_email_and_password(email: str | None, password: str | None) -> None:
    if not (email or "").strip() or not password:
        raise InvalidInput("Email and password are required")


def register_user(
    conn: Any,
    tokens: TokenIssuer,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    pwd: CryptContext | None = None,
) -> Dict[str, Any]:
    _require_email_and_password(email, password)
    try:
        user = create_user(conn, name=name, email=str(email), password=str(password), pwd=pwd)
    except ValueError as e:
        if str(e) == "email_exists":
            raise Conflict("User already exists") from e
        raise InvalidInput("Email and password are required") from e

    return {"token": tokens.issue(user["id"]), "user": user}


def login_user(
    conn: Any,
    tokens: TokenIssuer,
    *,
    email: str | None,
    password: str | None,
    pwd: CryptContext | None = None,
) -> Dict[str, Any]:
    _require_email_and_password(email, password)

    # Unknown email and wrong password raise the same error on purpose.
    row = verify_user_credentials(conn, str(email), str(password), pwd=pwd)
    if row is None:
        raise InvalidCredentials()

    user = public_user(row)
    return {"token": tokens.issue(user["id"]), "user": user}
