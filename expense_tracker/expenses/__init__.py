"""Owner-scoped expense records."""

from .crud import (
    create_expense,
    delete_expense,
    get_expense,
    list_expenses,
    summarize_expenses,
    update_expense,
)

__all__ = [
    "create_expense",
    "delete_expense",
    "get_expense",
    "list_expenses",
    "summarize_expenses",
    "update_expense",
]
