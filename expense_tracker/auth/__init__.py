"""Authentication helpers.

Auth is intentionally lightweight:

- Users table (email + password hash)
- Stateless JWT access tokens, sent as `Authorization: Bearer <token>`

Tokens are verified by signature and expiry only; there is no session table and
no revocation.
"""

from .deps import get_auth_context
from .security import TokenIssuer
from .service import login_user, register_user

__all__ = [
    "get_auth_context",
    "TokenIssuer",
    "login_user",
    "register_user",
]
