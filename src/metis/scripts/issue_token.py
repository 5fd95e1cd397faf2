# src/metis/scripts/issue_token.py
"""Issue a JWT access token for an existing user (local development helper)."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import select

from metis.core.security import create_access_token
from metis.db.session import SessionLocal
from metis.models import User


def main() -> None:
    parser = argparse.ArgumentParser(description="Print a bearer token for a user login")
    parser.add_argument("login", help="Login of the user the token is issued for")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = db.scalars(select(User).where(User.login == args.login)).first()
    finally:
        db.close()

    if user is None:
        print(f"[issue_token] ERROR: unknown login {args.login!r}", file=sys.stderr)
        sys.exit(1)
    print(create_access_token(user.login))


if __name__ == "__main__":
    main()
