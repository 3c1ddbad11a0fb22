import os


def _env_bool(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name):
    value = os.environ.get(name)
    return float(value) if value else None


# MySQL
DB_HOST = os.environ.get('DB_HOST', 'localhost')
DB_USER = os.environ.get('DB_USER', 'root')
DB_PASS = os.environ.get('DB_PASS', 'root')
DB_NAME = os.environ.get('DB_NAME', 'imscp')

# API tokens
JWT_SECRET = os.environ.get('JWT_SECRET', 'mscp-dev-secret-change-in-production')
JWT_EXPIRY_HOURS = int(os.environ.get('JWT_EXPIRY_HOURS', '24'))

# Backend daemon
DAEMON_TYPE = os.environ.get('DAEMON_TYPE', 'imscp')
DAEMON_HOST = os.environ.get('DAEMON_HOST', '127.0.0.1')
DAEMON_PORT = int(os.environ.get('DAEMON_PORT', '9876'))
# None keeps the socket blocking (OS defaults)
DAEMON_TIMEOUT = _env_float('DAEMON_TIMEOUT')
PANEL_VERSION = os.environ.get('PANEL_VERSION', '1.5.3')

OUTBOX_RELAY_INTERVAL = int(os.environ.get('OUTBOX_RELAY_INTERVAL', '60'))

# Mail policies
HARD_MAIL_SUSPENSION = _env_bool('HARD_MAIL_SUSPENSION', '1')
PROTECT_DEFAULT_EMAIL_ADDRESSES = _env_bool('PROTECT_DEFAULT_EMAIL_ADDRESSES', '1')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
