"""
Event persistence in PostgreSQL.

Writes that need ownership are scoped by `organizer_id` in the SQL itself, so
a row is only ever changed by its organizer even if the caller skipped the
service-level check.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

import psycopg2

from backend.database.db_connection import ConnectionFactory
from backend.errors import InternalError

EVENT_COLUMNS = (
    "event_id, title, description, event_date, location, category, "
    "max_attendees, status, organizer_id, created_at, updated_at"
)

# Columns a client may set, in a stable order for SQL generation.
WRITABLE_COLUMNS = (
    "title",
    "description",
    "event_date",
    "location",
    "category",
    "max_attendees",
    "status",
)


class EventStore:
    def __init__(self, connect: ConnectionFactory, logger: Optional[logging.Logger] = None):
        self._connect = connect
        self._log = logger or logging.getLogger(__name__)

    def _execute(self, sql: str, params: tuple, fetch: str = "one") -> Any:
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    if fetch == "one":
                        row = cur.fetchone()
                        return dict(row) if row else None
                    if fetch == "all":
                        return [dict(row) for row in cur.fetchall()]
                    return cur.rowcount
        except psycopg2.Error as e:
            self._log.error("Event store query failed: %s", type(e).__name__)
            raise InternalError() from e

    def create(self, organizer_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        columns = [c for c in WRITABLE_COLUMNS if c in fields and c != "status"]
        values = [fields[c] for c in columns]
        sql = f"""
            INSERT INTO events (event_id, organizer_id, status, {", ".join(columns)})
            VALUES (%s, %s, 'draft', {", ".join(["%s"] * len(columns))})
            RETURNING {EVENT_COLUMNS};
        """
        return self._execute(sql, (str(uuid.uuid4()), organizer_id, *values))

    def list_published(self) -> List[Dict[str, Any]]:
        sql = f"""
            SELECT {EVENT_COLUMNS} FROM events
            WHERE status = 'published'
            ORDER BY event_date ASC;
        """
        return self._execute(sql, (), fetch="all")

    def find_by_id(self, event_id: str) -> Optional[Dict[str, Any]]:
        sql = f"SELECT {EVENT_COLUMNS} FROM events WHERE event_id = %s;"
        return self._execute(sql, (event_id,))

    def update_owned(self, event_id: str, organizer_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply `fields` to an event owned by `organizer_id`.

        Returns:
            dict: The updated row, or None if no row matched both the id and
            the organizer.
        """
        columns = [c for c in WRITABLE_COLUMNS if c in fields]
        if not columns:
            return self.find_by_id(event_id)

        set_clause = ", ".join(f"{c} = %s" for c in columns)
        set_clause += ", updated_at = CURRENT_TIMESTAMP"
        values = [fields[c] for c in columns]

        sql = f"""
            UPDATE events SET {set_clause}
            WHERE event_id = %s AND organizer_id = %s
            RETURNING {EVENT_COLUMNS};
        """
        return self._execute(sql, (*values, event_id, organizer_id))

    def delete_owned(self, event_id: str, organizer_id: str) -> bool:
        sql = "DELETE FROM events WHERE event_id = %s AND organizer_id = %s;"
        return self._execute(sql, (event_id, organizer_id), fetch="rowcount") > 0
