#!/usr/bin/env python3
"""
Issue a bearer token for the Quote API.

Registers the user in the database if it does not exist yet, then
prints a signed token for it.  Uses the same ``SECRET_KEY`` and
``DATABASE_URL`` environment variables as the API.

Usage:
    python create_token.py --email admin@ex.com --days 365
"""

import argparse
import asyncio

from quote_api.app.core.db import init_db
from quote_api.app.core.security import create_access_token
from quote_api.app.services.user_service import UserService


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a Quote API bearer token.")
    ap.add_argument("--email", required=True, help="User email, used as token subject")
    ap.add_argument("--full-name", help="Full name stored when the user is first registered")
    ap.add_argument("--days", type=int, default=None, help="Token lifetime in days (default: ACCESS_TOKEN_EXPIRE_MINUTES)")
    args = ap.parse_args()

    init_db()
    user = asyncio.run(UserService.get_or_create_user(args.email, args.full_name))
    expires = args.days * 24 * 60 * 60 if args.days is not None else None
    print(create_access_token({"sub": user.email}, expires_delta=expires))


if __name__ == "__main__":
    main()
