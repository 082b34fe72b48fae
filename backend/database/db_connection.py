"""
PostgreSQL connection helper.
Provides get_db() for use by the stores.
"""

import logging
from contextlib import contextmanager
from functools import partial
from typing import Callable, ContextManager, Iterator

import psycopg2
from psycopg2.extensions import connection as PgConnection
from psycopg2.extras import DictCursor

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], ContextManager[PgConnection]]


@contextmanager
def get_db(database_url: str) -> Iterator[PgConnection]:
    """
    Open a psycopg2 connection with dictionary-based row access.

    The connection commits when the block exits cleanly, rolls back on error,
    and is always closed afterwards.

    Usage:
        with get_db(url) as conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Raises:
        psycopg2.Error: If the connection fails.
    """
    try:
        conn = psycopg2.connect(database_url, cursor_factory=DictCursor)
    except psycopg2.Error as e:
        # The URL may carry credentials, so only the driver message is logged.
        logger.error("Error connecting to database: %s", e.pgerror or type(e).__name__)
        raise

    try:
        with conn:
            yield conn
    finally:
        conn.close()


def connection_factory(database_url: str) -> ConnectionFactory:
    """Bind a database URL so stores can open connections without seeing config."""
    return partial(get_db, database_url)
