"""Database schema for the Expense Tracker.

Runs on SQLite by default and on Postgres when a postgres URL is configured.

Timestamps are ISO-8601 TEXT (UTC, fixed microsecond width, trailing 'Z') for
portability across engines. Fixed-width ISO strings sort lexicographically in time
order, so `ORDER BY date DESC` gives most-recent-first on both engines.

Identifiers are opaque TEXT generated by the application (uuid4 hex).

NOTE: The Postgres schema is generated from the SQLite schema with a small set of
transformations (types + pragmas).
"""

from __future__ import annotations

import re


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
-- Email is stored normalized (trimmed + lower-cased) and is the login key.
-- We use JWTs for stateless auth and store only password hashes.
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    name TEXT,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Expenses (owned by exactly one user)
-- user_id is the token subject and carries no foreign key: the auth gate trusts
-- a validly signed token without looking the user up.
-- title/amount are nullable: content validation is left to the client.
CREATE TABLE IF NOT EXISTS expenses (
    expense_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT,
    amount REAL,
    date TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_expenses_user_date ON expenses (user_id, date);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    # Remove SQLite pragmas
    lines: list[str] = []
    for line in ddl.splitlines():
        if line.strip().upper().startswith("PRAGMA "):
            continue
        lines.append(line)
    out = "\n".join(lines)

    # Types
    out = re.sub(r"\bREAL\b", "DOUBLE PRECISION", out)

    return out


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
