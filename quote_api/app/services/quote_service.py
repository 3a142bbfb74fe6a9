"""
Persistence for quotes.

``QuoteService`` is the repository the quote handlers talk to:
``find``, ``find_all``, ``save`` (insert or update) and ``delete``.
Each call opens its own connection and commits before returning, so a
successful call is durable by the time the handler responds.

Amounts are stored as their two-decimal text form to avoid binary
floating point; ``created_at`` is stored as ``YYYY-MM-DD HH:MM:SS``.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from quote_api.app.core.db import get_connection
from quote_api.app.schemas.quote import CREATED_AT_FORMAT, Quote, format_amount

logger = logging.getLogger(__name__)


class QuoteService:
    """Repository for the ``quotes`` table."""

    @classmethod
    async def find(cls, quote_id: int) -> Optional[Quote]:
        """Return the quote with ``quote_id`` or ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM quotes WHERE id = ?",
                (quote_id,),
            ).fetchone()
            if not row:
                return None
            return cls._row_to_quote(row)
        finally:
            conn.close()

    @classmethod
    async def find_all(cls) -> List[Quote]:
        """Return every stored quote, whatever its owner, ordered by id."""
        conn = get_connection()
        try:
            rows = conn.execute("SELECT * FROM quotes ORDER BY id ASC").fetchall()
            return [cls._row_to_quote(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def save(cls, quote: Quote) -> Optional[Quote]:
        """Insert ``quote`` when it has no id yet, otherwise update it.

        Updates only touch title, description and amount; ``created_at``
        and the owner are written once on insert.  Returns the stored
        quote with its id set, or ``None`` when the quote to update no
        longer exists.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if quote.id is None:
                cursor.execute(
                    """
                    INSERT INTO quotes (title, description, amount, created_at, user_id)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        quote.title,
                        quote.description,
                        format_amount(quote.amount),
                        quote.created_at.strftime(CREATED_AT_FORMAT),
                        quote.user_id,
                    ),
                )
                conn.commit()
                quote = quote.model_copy(update={"id": cursor.lastrowid})
                logger.info("Created quote %s for user %s", quote.id, quote.user_id)
            else:
                cursor.execute(
                    """
                    UPDATE quotes
                    SET title = ?, description = ?, amount = ?
                    WHERE id = ?
                    """,
                    (quote.title, quote.description, format_amount(quote.amount), quote.id),
                )
                affected = cursor.rowcount
                conn.commit()
                if not affected:
                    return None
                logger.info("Updated quote %s", quote.id)
            return quote
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def delete(cls, quote: Quote) -> bool:
        """Delete ``quote``.  Returns ``True`` if a row was removed."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM quotes WHERE id = ?", (quote.id,))
            affected = cursor.rowcount
            conn.commit()
            if affected:
                logger.info("Deleted quote %s", quote.id)
            return affected > 0
        finally:
            conn.close()

    @staticmethod
    def _row_to_quote(row: sqlite3.Row) -> Quote:
        """Convert a database row to a ``Quote``."""
        return Quote(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            created_at=datetime.strptime(row["created_at"], CREATED_AT_FORMAT),
            user_id=row["user_id"],
        )


def get_quote_service() -> type[QuoteService]:
    """Dependency returning the quote repository used by the handlers."""
    return QuoteService
