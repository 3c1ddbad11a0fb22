import logging

from .db import execute_query, fetch_one
from . import outbox

logger = logging.getLogger(__name__)

OUTBOX_DDL = f"""
    CREATE TABLE IF NOT EXISTS `{outbox.TABLE}` (
        id INT UNSIGNED NOT NULL AUTO_INCREMENT,
        reason VARCHAR(255) NOT NULL,
        created_at DATETIME NOT NULL,
        dispatched_at DATETIME NULL DEFAULT NULL,
        PRIMARY KEY (id),
        KEY dispatched_at (dispatched_at)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
"""


def ensure_database_schema():
    """Create the tables the panel adds on top of the legacy schema.

    Returns True when the schema is usable.
    """
    try:
        result = fetch_one(
            "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_SCHEMA=DATABASE() AND TABLE_NAME=%s",
            (outbox.TABLE,)
        )
        if not result:
            logger.info(f"Creating '{outbox.TABLE}' table...")
            execute_query(OUTBOX_DDL)
            logger.info(f"Successfully created '{outbox.TABLE}' table")
    except Exception as e:
        logger.warning(f"Could not create {outbox.TABLE} table: {e}")
        return False

    return True
