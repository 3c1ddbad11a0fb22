import logging

from .db import execute, fetch_all, fetch_one, query_one, transaction
from .errors import InvalidStatusTransition, NotFoundError
from .status import PENDING_STATUSES, TOCHANGE, ENTITIES, check_transition, get_entity, humanize_status, is_error
from . import outbox

logger = logging.getLogger(__name__)


def _placeholders(values):
    return ','.join(['%s'] * len(values))

def count_pending_requests():
    """Number of items, all types together, waiting for the daemon."""
    total = 0
    for entity in ENTITIES.values():
        sql = f"""
            SELECT COUNT(*) AS cnt FROM `{entity.table}`
            WHERE `{entity.status_column}` IN ({_placeholders(PENDING_STATUSES)})
        """
        if entity.where:
            sql += f" AND {entity.where}"
        row = fetch_one(sql, PENDING_STATUSES)
        total += row['cnt'] if row else 0
    return total

def list_status_errors():
    """Items left in an error state by the daemon, grouped by item type."""
    errors = {}
    for item_type, entity in ENTITIES.items():
        sql = f"""
            SELECT `{entity.id_column}` AS id, `{entity.name_column}` AS name, `{entity.status_column}` AS status
            FROM `{entity.table}`
            WHERE `{entity.status_column}` NOT IN ({_placeholders(entity.normal_statuses)})
        """
        if entity.where:
            sql += f" AND {entity.where}"
        rows = fetch_all(sql, entity.normal_statuses)
        if rows:
            errors[item_type] = [dict(row, label=humanize_status(row['status'])) for row in rows]
    return errors

def requeue_item(item_type, item_id):
    """Give an item a new attempt by setting it back to 'tochange'."""
    entity = get_entity(item_type)

    with transaction() as conn:
        row = query_one(
            conn,
            f"SELECT `{entity.status_column}` AS status FROM `{entity.table}` WHERE `{entity.id_column}`=%s",
            (item_id,)
        )
        if not row:
            raise NotFoundError(f"Unknown {item_type} item: {item_id}")

        # Only items the daemon left in error get a new attempt
        if not is_error(row['status'], entity.normal_statuses):
            raise InvalidStatusTransition(row['status'], TOCHANGE)
        check_transition(row['status'], TOCHANGE)
        execute(
            conn,
            f"UPDATE `{entity.table}` SET `{entity.status_column}`=%s WHERE `{entity.id_column}`=%s",
            (TOCHANGE, item_id)
        )
        outbox.enqueue(conn, f"requeue {item_type} {item_id}")

    logger.info(f"Status of {item_type} item {item_id} changed to {TOCHANGE} for a new attempt")
    return 'Done'

def run_pending(notifier):
    """Send a daemon request when something is waiting. Returns (success, message)."""
    if not count_pending_requests():
        return False, 'There is no pending request. Operation canceled.'

    if outbox.notify_after_commit(notifier):
        return True, 'Daemon request successful.'
    return False, 'Daemon request failed.'
