"""
Client for the backend daemon.
Wakes the daemon up so that it processes the requests (to* statuses) written by the panel.

Protocol: line based, every answer starts with a 3-digit code and 250 means success.

    <- 250 welcome
    -> helo <version>
    <- 250 ...
    -> execute backend command
    <- 250 ...
    -> bye
    <- 250 ...
"""

import socket
import logging

from flask import g

from . import config

logger = logging.getLogger(__name__)

SUCCESS_CODE = 250
MAX_ANSWER_LENGTH = 1024


class DaemonNotifier:
    """Send at most one request to the daemon.

    A notifier lives as long as the HTTP request that owns it (see get_notifier).
    The first call to send_request() marks it as sent whatever the outcome, so
    further calls return the cached result without touching the network.
    """

    def __init__(self, daemon_type=None, host=None, port=None, version=None, timeout=None):
        self.daemon_type = daemon_type if daemon_type is not None else config.DAEMON_TYPE
        self.host = host or config.DAEMON_HOST
        self.port = port or config.DAEMON_PORT
        self.version = version or config.PANEL_VERSION
        self.timeout = timeout if timeout is not None else config.DAEMON_TIMEOUT
        self._sent = False
        self._result = None

    @property
    def is_sent(self):
        return self._sent

    @property
    def result(self):
        return self._result

    def send_request(self):
        """Notify the daemon. Returns True on success, False otherwise."""
        if self._sent:
            return self._result

        self._sent = True

        if self.daemon_type != 'imscp':
            # Another daemon flavour polls the database by itself
            self._result = True
            return self._result

        self._result = self._exchange()
        return self._result

    def _exchange(self):
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            logger.error(f"Couldn't connect to the daemon at {self.host}:{self.port}: {e}")
            return False

        try:
            with sock, sock.makefile('rb') as reader:
                # Welcome message
                if not self._read_answer(reader):
                    return False

                for command in (f"helo {self.version}", 'execute backend command', 'bye'):
                    if not self._send_command(sock, command) or not self._read_answer(reader):
                        return False

                return True
        except OSError as e:
            logger.error(f"Communication with the daemon failed: {e}")
            return False

    def _read_answer(self, reader):
        answer = reader.readline(MAX_ANSWER_LENGTH)
        if not answer:
            logger.error("Unable to read answer from the daemon: connection closed")
            return False

        answer = answer.decode('ascii', errors='replace').strip()
        code = answer.split(' ', 1)[0]

        if not code.isdigit() or int(code) != SUCCESS_CODE:
            logger.error(f"The daemon returned an unexpected answer: {answer}")
            return False

        return True

    def _send_command(self, sock, command):
        data = f"{command}\n".encode('ascii')

        while data:
            sent = sock.send(data)
            if not sent:
                logger.error(f"Couldn't send command to the daemon: {command}")
                return False
            # Partial write, retry with the remainder
            data = data[sent:]

        return True


def get_notifier():
    """Return the notifier bound to the current Flask request."""
    if 'daemon_notifier' not in g:
        g.daemon_notifier = DaemonNotifier()
    return g.daemon_notifier
