from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved by the auth gate from a verified bearer token.

    Handlers take this as a dependency and pass `user_id` explicitly into the
    expense functions; nothing reads identity from ambient state.
    """

    user_id: str
