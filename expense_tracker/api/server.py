from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from passlib.context import CryptContext
from pydantic import BaseModel, field_validator

from expense_tracker.auth import get_auth_context, login_user, register_user
from expense_tracker.auth.deps import (
    authenticate_request,
    get_password_context,
    get_token_issuer,
    is_guarded,
)
from expense_tracker.auth.security import TokenIssuer, make_password_context
from expense_tracker.config import Config, load_config
from expense_tracker.db import connect, init_db
from expense_tracker.errors import ExpenseTrackerError, InternalFault, Unauthenticated
from expense_tracker.expenses import (
    create_expense,
    delete_expense,
    list_expenses,
    summarize_expenses,
    update_expense,
)
from expense_tracker.models import AuthContext


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


router = APIRouter()


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise InternalFault("server_config_missing")
    return cfg


@contextmanager
def _storage(cfg: Config, *, server_error: bool = False) -> Iterator[Any]:
    """Open a connection; anything that isn't already an API error becomes InternalFault.

    server_error=True reports the auth-route shape: {"message": "Server error", "error": ...}.
    Otherwise the underlying message is the message. No retries.
    """
    try:
        with connect(cfg.DB_DSN) as conn:
            yield conn
    except ExpenseTrackerError:
        raise
    except Exception as e:
        if server_error:
            _debug(f"Server error: {e}")
            raise InternalFault("Server error", error=str(e)) from e
        raise InternalFault(str(e)) from e


# -----------------------------
# Health
# -----------------------------


@router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------

# Fields are optional so that a missing one is reported as
# "Email and password are required" rather than a schema error.


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
def auth_register(
    payload: RegisterRequest,
    cfg: Config = Depends(get_config),
    tokens: TokenIssuer = Depends(get_token_issuer),
    pwd: CryptContext = Depends(get_password_context),
) -> Dict[str, Any]:
    with _storage(cfg, server_error=True) as conn:
        out = register_user(
            conn,
            tokens,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            pwd=pwd,
        )
    _debug(f"New user registered: {out['user']['email']}")
    return {"message": "Registration successful", **out}


@router.post("/auth/login")
def auth_login(
    payload: LoginRequest,
    cfg: Config = Depends(get_config),
    tokens: TokenIssuer = Depends(get_token_issuer),
    pwd: CryptContext = Depends(get_password_context),
) -> Dict[str, Any]:
    with _storage(cfg, server_error=True) as conn:
        out = login_user(
            conn,
            tokens,
            email=payload.email,
            password=payload.password,
            pwd=pwd,
        )
    _debug(f"User logged in: {out['user']['email']}")
    return {"message": "Login successful", **out}


# -----------------------------
# Expenses (owner-scoped)
# -----------------------------


class ExpenseCreateRequest(BaseModel):
    """No content rules (non-empty title, non-negative amount): the dashboard form enforces those."""

    title: Optional[str] = None
    amount: Optional[float] = None
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def date_in_utc_range(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None or v.tzinfo is None:
            return v
        try:
            v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError("date is outside the representable UTC range")
        return v


class ExpenseUpdateRequest(BaseModel):
    title: Optional[str] = None
    amount: Optional[float] = None


@router.get("/expenses")
def expenses_list(
    ctx: AuthContext = Depends(get_auth_context),
    cfg: Config = Depends(get_config),
) -> List[Dict[str, Any]]:
    with _storage(cfg) as conn:
        return list_expenses(conn, user_id=ctx.user_id)


@router.get("/expenses/summary")
def expenses_summary(
    days: Optional[int] = Query(None, ge=1, le=3650, description="Optional lookback window in days"),
    ctx: AuthContext = Depends(get_auth_context),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with _storage(cfg) as conn:
        return summarize_expenses(conn, user_id=ctx.user_id, days=days)


@router.post("/expenses")
def expenses_create(
    payload: ExpenseCreateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    # The owner always comes from the token, never from the body.
    with _storage(cfg) as conn:
        return create_expense(
            conn,
            user_id=ctx.user_id,
            title=payload.title,
            amount=payload.amount,
            date=payload.date,
        )


@router.put("/expenses/{expense_id}")
def expenses_update(
    expense_id: str,
    payload: ExpenseUpdateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with _storage(cfg) as conn:
        return update_expense(
            conn,
            user_id=ctx.user_id,
            expense_id=expense_id,
            changes=payload.model_dump(exclude_unset=True),
        )


@router.delete("/expenses/{expense_id}")
def expenses_delete(
    expense_id: str,
    ctx: AuthContext = Depends(get_auth_context),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with _storage(cfg) as conn:
        delete_expense(conn, user_id=ctx.user_id, expense_id=expense_id)
    return {"message": "Expense deleted"}


# -----------------------------
# App
# -----------------------------


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ExpenseTrackerError)
    async def expense_tracker_error_handler(request: Request, exc: ExpenseTrackerError):
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # The body is decoded before dependencies run; a guarded route still answers 401 first.
        if is_guarded(request):
            try:
                authenticate_request(request, get_token_issuer(request))
            except Unauthenticated as e:
                return JSONResponse(status_code=e.http_status, content=e.to_response(), headers=e.headers)

        # Only locations are logged; the raw input may contain a password.
        fields = [".".join(str(loc) for loc in e["loc"]) for e in exc.errors()]
        _debug(f"Validation error on {request.url.path}: {fields}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": "Invalid request data",
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        )


def create_app(cfg: Config | None = None) -> FastAPI:
    """Build the API. Secrets and storage settings are fixed here for the app's lifetime."""
    cfg = cfg or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure schema exists.
        init_db(cfg.DB_DSN)
        _debug("Expense Tracker API started")
        yield

    app = FastAPI(title="Expense Tracker API", version="0.1.0", lifespan=lifespan)
    app.state.cfg = cfg
    app.state.tokens = TokenIssuer(secret=cfg.AUTH_JWT_SECRET, expires_minutes=cfg.AUTH_TOKEN_EXPIRE_MINUTES)
    app.state.pwd = make_password_context(cfg.AUTH_PASSWORD_ROUNDS)

    # CORS is mainly needed for local development (Vite on :5173 -> API on :8000).
    origins = cfg.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    _register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
