"""Error taxonomy for the expense tracker API.

Every failure the API reports is one of these. The FastAPI handler in
`expense_tracker.api.server` renders them as `{"message": ...}` with the
status code carried by the exception, so route handlers only ever raise.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ExpenseTrackerError(Exception):
    """Base exception for all API-visible errors."""

    http_status: int = 500
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str, *, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class InvalidInput(ExpenseTrackerError):
    """Required fields are missing."""

    http_status = 400


class Conflict(ExpenseTrackerError):
    """Email already registered."""

    http_status = 400


class InvalidCredentials(ExpenseTrackerError):
    """Unknown email or wrong password (deliberately not distinguished)."""

    http_status = 400

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class Unauthenticated(ExpenseTrackerError):
    """Bearer token missing, malformed, badly signed or expired."""

    http_status = 401
    headers = {"WWW-Authenticate": "Bearer"}


class NotFound(ExpenseTrackerError):
    """Record absent, or owned by someone else."""

    http_status = 404


class InternalFault(ExpenseTrackerError):
    """Storage or unexpected failure. The underlying message is passed through."""

    http_status = 500
