"""Personal Expense Tracker - Backend.

This repository is intentionally backend-only:
- The React dashboard (charts, forms) talks to this API over JSON.
- Every expense belongs to exactly one user and is only visible to that user.

Core concepts:
- Users register/login and receive a stateless JWT bearer token.
- Expense reads and writes are always scoped by (expense_id, user_id).
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
