"""
Daemon outbox.

Every scheduled change inserts an outbox row in the same transaction as its
status updates. A row stays pending until a daemon request sent after its
commit succeeds, so a failed notification is retried by the relay instead of
waiting for the daemon to poll.
"""

import logging
from datetime import datetime

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .db import execute, fetch_one, execute_query, insert
from .daemon import DaemonNotifier

logger = logging.getLogger(__name__)

TABLE = 'daemon_outbox'


def _now():
    return datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')

def enqueue(conn, reason):
    """Record a pending daemon request inside the caller's transaction."""
    return insert(TABLE, {'reason': reason[:255], 'created_at': _now()}, conn=conn)

def pending_count():
    row = fetch_one(f"SELECT COUNT(*) AS cnt FROM `{TABLE}` WHERE dispatched_at IS NULL")
    return row['cnt'] if row else 0

def latest_pending_id():
    row = fetch_one(f"SELECT MAX(id) AS last_id FROM `{TABLE}` WHERE dispatched_at IS NULL")
    return row['last_id'] if row else None

def mark_dispatched(up_to_id, conn=None):
    """Flag pending rows with id <= up_to_id as handed over to the daemon."""
    sql = f"UPDATE `{TABLE}` SET dispatched_at=%s WHERE dispatched_at IS NULL AND id <= %s"
    params = (_now(), up_to_id)
    if conn is not None:
        return execute(conn, sql, params)
    return execute_query(sql, params)

def notify_after_commit(notifier):
    """Wake the daemon once the scheduled change is committed.

    Failures are only logged: the change stands and the outbox row stays
    pending for the relay.
    """
    if notifier.is_sent:
        # Already used in this request, the relay picks up what came after
        logger.debug("Daemon already notified in this request, leaving outbox rows to the relay")
        return notifier.result

    try:
        last_id = latest_pending_id()
    except Exception as e:
        logger.error(f"Couldn't read the daemon outbox: {e}")
        last_id = None

    if not notifier.send_request():
        logger.error("Daemon notification failed; pending requests stay queued for the outbox relay")
        return False

    if last_id is None:
        return True

    try:
        mark_dispatched(last_id)
    except Exception as e:
        logger.error(f"Couldn't mark outbox requests up to {last_id} as dispatched: {e}")
        return False
    return True

class OutboxRelay:
    """Re-send daemon requests for committed changes that were never announced."""

    def __init__(self, notifier_factory=DaemonNotifier):
        self.notifier_factory = notifier_factory

    def run_once(self):
        """Returns the number of outbox rows dispatched."""
        last_id = latest_pending_id()
        if last_id is None:
            return 0

        notifier = self.notifier_factory()
        if not notifier.send_request():
            logger.warning("Outbox relay could not reach the daemon, will retry")
            return 0

        count = mark_dispatched(last_id)
        logger.info(f"Outbox relay dispatched {count} pending request(s)")
        return count

    def _scheduled_run(self):
        try:
            self.run_once()
        except Exception as e:
            logger.error(f"Outbox relay run failed: {e}")

    def schedule(self, scheduler, interval):
        """Add the relay as an interval job; overlapping or missed runs collapse into one."""
        scheduler.add_job(
            self._scheduled_run,
            IntervalTrigger(seconds=interval),
            id='outbox_relay',
            name='Daemon outbox relay',
            replace_existing=True,
            misfire_grace_time=max(int(interval), 1),
            coalesce=True,
            max_instances=1,
            next_run_time=datetime.now(),
        )
        return scheduler

    def run_forever(self, interval, scheduler=None):
        scheduler = self.schedule(scheduler or BlockingScheduler(), interval)
        logger.info(f"APScheduler started: outbox relay every {interval}s")
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("APScheduler stopped.")
