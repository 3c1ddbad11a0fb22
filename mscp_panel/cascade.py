import logging
from contextlib import contextmanager

from .db import transaction
from .errors import CascadeError, PanelError
from . import outbox

logger = logging.getLogger(__name__)


@contextmanager
def scheduled_change(notifier, action, failure_message):
    """Run a block of status updates as one scheduled change.

    The block receives the transaction connection. On success an outbox row
    is recorded in the same transaction, the transaction is committed, then
    the daemon is notified. Any error rolls everything back and the daemon
    is left alone.

    :param notifier: request-scoped DaemonNotifier
    :param action: what is being scheduled, used for the outbox and the logs
    :param failure_message: message shown to the user when the change is rolled back
    """
    try:
        with transaction() as conn:
            yield conn
            outbox.enqueue(conn, action)
    except PanelError:
        raise
    except Exception as e:
        logger.error(f"System was unable to {action}: {e}")
        raise CascadeError(failure_message) from e

    outbox.notify_after_commit(notifier)
