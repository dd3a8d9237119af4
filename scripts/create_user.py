"""Create a user account directly in the DB.

Usage:
  python scripts/create_user.py --email alice@example.com --password '...' --name Alice

NOTE: This is intended for local/dev. The public path is POST /auth/register.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from expense_tracker.auth.crud import create_user
from expense_tracker.auth.security import make_password_context
from expense_tracker.config import load_config
from expense_tracker.db import connect, init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--name", default=None)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        u = create_user(
            conn,
            email=args.email,
            password=args.password,
            name=args.name,
            pwd=make_password_context(cfg.AUTH_PASSWORD_ROUNDS),
        )

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
