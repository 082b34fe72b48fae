"""
Create the database tables.

Applies schema.sql (idempotent, every statement uses IF NOT EXISTS) against
DATABASE_URL and checks that the expected tables are present.

Usage:
    python -m backend.database.init_db
"""

import logging
import sys
from pathlib import Path
from typing import List

from backend.config import AppConfig, ConfigError, load_config
from backend.database.db_connection import get_db

SCHEMA_PATH = Path(__file__).with_name("schema.sql")
REQUIRED_TABLES = ["users", "events"]

logger = logging.getLogger(__name__)


def apply_schema(config: AppConfig) -> List[str]:
    """
    Run schema.sql and report which required tables are missing afterwards.

    Returns:
        list: Names of required tables that still do not exist (empty on success).
    """
    sql = SCHEMA_PATH.read_text(encoding="utf-8")
    missing = []

    with get_db(config.database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(sql)
            for table in REQUIRED_TABLES:
                cur.execute("SELECT to_regclass(%s);", (table,))
                if cur.fetchone()[0] is None:
                    missing.append(table)

    return missing


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    try:
        config = load_config()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    missing = apply_schema(config)
    if missing:
        logger.error("Schema applied but tables are missing: %s", ", ".join(missing))
        return 1

    logger.info("Schema applied; tables present: %s", ", ".join(REQUIRED_TABLES))
    return 0


if __name__ == "__main__":
    sys.exit(main())
