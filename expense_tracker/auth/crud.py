from __future__ import annotations

from typing import Any, Dict, Optional

from passlib.context import CryptContext

from expense_tracker.util.ids import new_id
from expense_tracker.util.time import utcnow_iso

from .security import hash_password, verify_password


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def public_user(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    """The fields safe to hand to clients (never the password hash)."""
    d = dict(row)
    return {"id": d["user_id"], "name": d.get("name"), "email": d["email"]}


def get_user_by_email(conn: Any, email: str) -> Optional[Any]:
    e = normalize_email(email)
    if not e:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE email=?",
        (e,),
    ).fetchone()


def get_user_by_id(conn: Any, user_id: str) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM users WHERE user_id=?",
        (str(user_id),),
    ).fetchone()


def email_exists(conn: Any, email: str) -> bool:
    e = normalize_email(email)
    return conn.execute("SELECT 1 FROM users WHERE email=?", (e,)).fetchone() is not None


def verify_user_credentials(
    conn: Any,
    email: str,
    password: str,
    *,
    pwd: CryptContext | None = None,
) -> Optional[Any]:
    row = get_user_by_email(conn, email)
    if row is None:
        return None
    if not verify_password(password, str(row["password_hash"]), pwd=pwd):
        return None
    return row


def create_user(
    conn: Any,
    *,
    email: str,
    password: str,
    name: str | None = None,
    pwd: CryptContext | None = None,
) -> Dict[str, Any]:
    """Insert a new user and return its public fields.

    The existence check and the insert are separate statements; the UNIQUE
    constraint on users.email is what ultimately rejects a concurrent duplicate.
    """
    e = normalize_email(email)
    if not e:
        raise ValueError("email_blank")

    if email_exists(conn, e):
        raise ValueError("email_exists")

    now = utcnow_iso()
    user_id = new_id()
    conn.execute(
        """
        INSERT INTO users (user_id, name, email, password_hash, created_at, updated_at)
        VALUES (?,?,?,?,?,?)
        """,
        (user_id, name, e, hash_password(password, pwd=pwd), now, now),
    )
    row = get_user_by_id(conn, user_id)
    assert row is not None
    return public_user(row)
