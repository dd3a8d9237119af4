from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.security.utils import get_authorization_scheme_param
from passlib.context import CryptContext

from expense_tracker.errors import InternalFault, Unauthenticated
from expense_tracker.models import AuthContext

from .security import TokenIssuer


_bearer = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    tokens = getattr(request.app.state, "tokens", None)
    if tokens is None:
        raise InternalFault("server_config_missing")
    return tokens


def get_password_context(request: Request) -> CryptContext:
    pwd = getattr(request.app.state, "pwd", None)
    if pwd is None:
        raise InternalFault("server_config_missing")
    return pwd


def authenticate_request(request: Request, tokens: TokenIssuer) -> AuthContext:
    """Authenticate a request from its `Authorization: Bearer <jwt>` header.

    Stateless: the user id embedded in a validly signed, unexpired token is
    trusted as-is, and the users table is never consulted here.
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        raise Unauthenticated("No token provided")

    scheme, token = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated("Invalid token")

    try:
        user_id = tokens.verify(token)
    except (jwt.InvalidTokenError, ValueError):
        # Covers ExpiredSignatureError, bad signature, garbage and missing sub.
        raise Unauthenticated("Invalid token")

    return AuthContext(user_id=user_id)


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    # `credentials` only registers the bearer scheme in OpenAPI; the header is
    # parsed by authenticate_request so the validation handler can share it.
    return authenticate_request(request, tokens)


def is_guarded(request: Request) -> bool:
    """True when the matched route depends on the auth gate."""
    route = request.scope.get("route")
    dependant = getattr(route, "dependant", None)
    if dependant is None:
        return False
    return any(d.call is get_auth_context for d in dependant.dependencies)
