"""Expense storage, always scoped to the owning user.

Every statement that touches an existing row filters on BOTH expense_id and
user_id. An id alone never reads, changes or removes anything, and a row owned
by someone else looks exactly like a missing row (NotFound).

Update and delete are single conditional statements (match-and-mutate with
RETURNING), so concurrent requests on the same row cannot interleave between a
check and a write.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from expense_tracker.errors import NotFound
from expense_tracker.util.ids import new_id
from expense_tracker.util.time import month_start_iso, to_utc_iso, utcnow_iso


_NOT_FOUND = "Expense not found"

# Client-mutable columns. user_id and expense_id are never in here.
_MUTABLE_FIELDS = ("title", "amount")


def public_expense(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    amount = d.get("amount")
    return {
        "id": d["expense_id"],
        "user_id": d["user_id"],
        "title": d.get("title"),
        "amount": float(amount) if amount is not None else None,
        "date": d["date"],
        "created_at": d["created_at"],
        "updated_at": d["updated_at"],
    }


def _first(rows: Any) -> Optional[Any]:
    # fetchall() drains the cursor so the connection can commit cleanly after RETURNING.
    rows = list(rows or [])
    return rows[0] if rows else None


def get_expense(conn: Any, *, user_id: str, expense_id: str) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM expenses WHERE expense_id=? AND user_id=?",
        (str(expense_id), str(user_id)),
    ).fetchone()
    if row is None:
        raise NotFound(_NOT_FOUND)
    return public_expense(row)


def list_expenses(conn: Any, *, user_id: str) -> List[Dict[str, Any]]:
    """All of the user's expenses, most recent `date` first."""
    rows = conn.execute(
        """
        SELECT * FROM expenses
        WHERE user_id=?
        ORDER BY date DESC, created_at DESC
        """,
        (str(user_id),),
    ).fetchall()
    return [public_expense(r) for r in rows]


def create_expense(
    conn: Any,
    *,
    user_id: str,
    title: str | None,
    amount: float | None,
    date: datetime | None = None,
) -> Dict[str, Any]:
    """Insert an expense owned by `user_id`.

    title/amount are stored as given; there is no content validation here.
    """
    now = utcnow_iso()
    expense_id = new_id()
    conn.execute(
        """
        INSERT INTO expenses (expense_id, user_id, title, amount, date, created_at, updated_at)
        VALUES (?,?,?,?,?,?,?)
        """,
        (
            expense_id,
            str(user_id),
            title,
            amount,
            to_utc_iso(date) if date is not None else now,
            now,
            now,
        ),
    )
    return get_expense(conn, user_id=user_id, expense_id=expense_id)


def update_expense(
    conn: Any,
    *,
    user_id: str,
    expense_id: str,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """Apply a partial {title, amount} patch to one of the user's expenses."""
    fields = [(k, changes[k]) for k in _MUTABLE_FIELDS if k in changes]
    if not fields:
        return get_expense(conn, user_id=user_id, expense_id=expense_id)

    fields.append(("updated_at", utcnow_iso()))
    sets = ", ".join([f"{k}=?" for k, _ in fields])
    params = [v for _, v in fields] + [str(expense_id), str(user_id)]
    row = _first(
        conn.execute(
            f"UPDATE expenses SET {sets} WHERE expense_id=? AND user_id=? RETURNING *",
            params,
        ).fetchall()
    )
    if row is None:
        raise NotFound(_NOT_FOUND)
    return public_expense(row)


def delete_expense(conn: Any, *, user_id: str, expense_id: str) -> None:
    row = _first(
        conn.execute(
            "DELETE FROM expenses WHERE expense_id=? AND user_id=? RETURNING expense_id",
            (str(expense_id), str(user_id)),
        ).fetchall()
    )
    if row is None:
        raise NotFound(_NOT_FOUND)


def summarize_expenses(
    conn: Any,
    *,
    user_id: str,
    days: int | None = None,
    top_n: int = 5,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """Dashboard totals for one user.

    - total/count: over the last `days` days, or over everything when days is None
    - month_total: current UTC calendar month
    - top: the `top_n` largest expenses in the same window as total
    """
    n = now or datetime.now(timezone.utc)
    where = ["user_id=?"]
    params: List[Any] = [str(user_id)]
    if days is not None:
        where.append("date >= ?")
        params.append(to_utc_iso(n - timedelta(days=int(days))))
    where_sql = " AND ".join(where)

    agg = conn.execute(
        f"SELECT COALESCE(SUM(amount), 0) AS total, COUNT(*) AS n FROM expenses WHERE {where_sql}",
        tuple(params),
    ).fetchone()

    month = conn.execute(
        "SELECT COALESCE(SUM(amount), 0) AS total FROM expenses WHERE user_id=? AND date >= ?",
        (str(user_id), month_start_iso(n)),
    ).fetchone()

    top = conn.execute(
        f"""
        SELECT expense_id, title, amount FROM expenses
        WHERE {where_sql} AND amount IS NOT NULL
        ORDER BY amount DESC, date DESC
        LIMIT ?
        """,
        (*params, int(top_n)),
    ).fetchall()

    return {
        "days": days,
        "total": float(agg["total"] or 0),
        "count": int(agg["n"] or 0),
        "month_total": float(month["total"] or 0),
        "top": [{"id": r["expense_id"], "title": r["title"], "amount": float(r["amount"])} for r in top],
    }
