"""
Credential store: user rows in PostgreSQL.

Rows come back as plain dicts with the columns of the `users` table. Lookups
return None when nothing matches; only driver failures raise.
"""

import logging
import uuid
from typing import Any, Dict, Optional

import psycopg2
import psycopg2.errors

from backend.database.db_connection import ConnectionFactory
from backend.errors import ConflictError, InternalError

USER_COLUMNS = "user_id, name, email, password_hash, created_at, updated_at"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserStore:
    def __init__(self, connect: ConnectionFactory, logger: Optional[logging.Logger] = None):
        self._connect = connect
        self._log = logger or logging.getLogger(__name__)

    def _fetch_one(self, sql: str, params: tuple) -> Optional[Dict[str, Any]]:
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    row = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            raise ConflictError() from e
        except psycopg2.Error as e:
            self._log.error("User store query failed: %s", type(e).__name__)
            raise InternalError() from e
        return dict(row) if row else None

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        sql = f"SELECT {USER_COLUMNS} FROM users WHERE lower(email) = %s;"
        return self._fetch_one(sql, (normalize_email(email),))

    def find_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        sql = f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s;"
        return self._fetch_one(sql, (user_id,))

    def create(self, name: str, email: str, password_hash: str) -> Dict[str, Any]:
        """
        Insert a user and return the stored row.

        Raises:
            ConflictError: If the email is already taken (unique index on
                lower(email)), including when a concurrent request won the race.
        """
        sql = f"""
            INSERT INTO users (user_id, name, email, password_hash)
            VALUES (%s, %s, %s, %s)
            RETURNING {USER_COLUMNS};
        """
        user_id = str(uuid.uuid4())
        return self._fetch_one(sql, (user_id, name.strip(), normalize_email(email), password_hash))

    def update_name(self, user_id: str, name: str) -> Optional[Dict[str, Any]]:
        sql = f"""
            UPDATE users SET name = %s, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            RETURNING {USER_COLUMNS};
        """
        return self._fetch_one(sql, (name.strip(), user_id))

    def update_password_hash(self, user_id: str, password_hash: str) -> Optional[Dict[str, Any]]:
        sql = f"""
            UPDATE users SET password_hash = %s, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            RETURNING {USER_COLUMNS};
        """
        return self._fetch_one(sql, (password_hash, user_id))
