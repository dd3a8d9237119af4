import os
from dataclasses import dataclass

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_int(name: str, default: int) -> int:
    """Parse an integer environment variable, falling back to default when unset or blank."""
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    return int(raw)


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide the JWT secret via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set EXPENSE_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: EXPENSE_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("EXPENSE_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("EXPENSE_DB_PATH", "./expense_tracker.sqlite")
    )

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    # The secret is read once at startup; there is no rotation.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_MINUTES: int = _env_int("AUTH_TOKEN_EXPIRE_MINUTES", 10080)  # 7 days

    # pbkdf2_sha256 work factor. Fixed for the process; existing hashes keep
    # verifying after a change because the rounds are embedded in each hash.
    AUTH_PASSWORD_ROUNDS: int = _env_int("AUTH_PASSWORD_ROUNDS", 29000)

    # -----------------
    # CORS (development)
    # -----------------
    # The dashboard runs on Vite (:5173) during development and calls the API on :8000.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config() -> Config:
    return Config()
