"""Persistence layer for account usage counters."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Optional

import psycopg2.extras
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from ...app_context import get_conn
from .models import Account


@contextmanager
def managed_connection(conn: Optional[PgConnection] = None):
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    connection = get_conn()
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


def _row_to_account(row: dict) -> Account:
    return Account(
        id=str(row["id"]),
        voice_conversation_count=int(row.get("voice_conversation_count") or 0),
        voice_conversation_free_limit_override=row.get("voice_conversation_free_limit_override"),
    )


class PostgresAccountRepository:
    """Reads account usage and records voice conversations in PostgreSQL."""

    def __init__(self, *, conn: Optional[PgConnection] = None) -> None:
        self._conn = conn

    @contextmanager
    def _cursor(self) -> Iterable[PgCursor]:
        with managed_connection(self._conn) as (connection, _):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cursor
            finally:
                cursor.close()

    def find_account(self, account_id: str) -> Optional[Account]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, voice_conversation_count, voice_conversation_free_limit_override
                FROM accounts
                WHERE id = %s
                """,
                (account_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return _row_to_account(row)

    def increment_voice_conversation_count(self, account_id: str) -> None:
        """Add one conversation to the stored counter.

        The addition happens inside the ``UPDATE`` statement so concurrent
        requests for the same account never lose an increment.
        """

        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE accounts
                SET voice_conversation_count = COALESCE(voice_conversation_count, 0) + 1
                WHERE id = %s
                """,
                (account_id,),
            )


__all__ = ["PostgresAccountRepository", "managed_connection"]
