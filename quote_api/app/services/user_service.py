"""
Lookup and registration of users.

The quote API does not manage accounts; this service only resolves
the subject of a bearer token to a user row and lets the
``create_token.py`` script register the user a token is minted for.
"""

import logging
import sqlite3
from typing import Optional

from quote_api.app.core.db import get_connection
from quote_api.app.schemas.user import UserRead

logger = logging.getLogger(__name__)


class UserService:
    """Service for the ``users`` table."""

    @classmethod
    async def get_user_by_email(cls, email: str) -> Optional[UserRead]:
        """Return the user registered under ``email`` or ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, full_name, disabled FROM users WHERE email = ?",
                (email,),
            ).fetchone()
            if not row:
                return None
            return cls._row_to_user_read(row)
        finally:
            conn.close()

    @classmethod
    async def get_or_create_user(cls, email: str, full_name: Optional[str] = None) -> UserRead:
        """Return the user for ``email``, inserting it first if needed."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO users (email, full_name) VALUES (?, ?)",
                (email, full_name),
            )
            if cursor.rowcount:
                logger.info("Registered user %s", email)
            conn.commit()
            row = cursor.execute(
                "SELECT id, email, full_name, disabled FROM users WHERE email = ?",
                (email,),
            ).fetchone()
            return cls._row_to_user_read(row)
        finally:
            conn.close()

    @staticmethod
    def _row_to_user_read(row: sqlite3.Row) -> UserRead:
        return UserRead(
            id=row["id"],
            email=row["email"],
            full_name=row["full_name"],
            disabled=bool(row["disabled"]),
        )
