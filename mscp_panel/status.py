"""
Item status vocabulary shared with the backend daemon.

The panel only ever writes the ``to*`` request statuses. Terminal statuses
(``ok``, ``disabled`` and error messages) are written by the daemon once it
has processed a request.
"""

from collections import namedtuple

from .errors import InvalidStatusTransition, PanelError

TOADD = 'toadd'
TOCHANGE = 'tochange'
TOCHANGEPWD = 'tochangepwd'
TODELETE = 'todelete'
TOENABLE = 'toenable'
TODISABLE = 'todisable'
TORESTORE = 'torestore'
OK = 'ok'
DISABLED = 'disabled'
ERROR = 'error'
ORDERED = 'ordered'

# Statuses counted as work waiting for the daemon
PENDING_STATUSES = (
    'toinstall', 'toupdate', 'touninstall',
    TOADD, TOCHANGE, TORESTORE, TOENABLE, TODISABLE, TODELETE,
)

TERMINAL_STATUSES = (OK, DISABLED, ERROR)

_WEB_TRANSITIONS = {
    None: (TOADD,),
    ORDERED: (TOADD,),
    OK: (TOCHANGE, TOCHANGEPWD, TODELETE, TODISABLE, TORESTORE),
    DISABLED: (TOENABLE, TODELETE),
}

_LABELS = {
    OK: 'Ok',
    TOADD: 'Addition in progress...',
    TOCHANGE: 'Modification in progress...',
    TORESTORE: 'Modification in progress...',
    TOCHANGEPWD: 'Modification in progress...',
    TODELETE: 'Deletion in progress...',
    DISABLED: 'Deactivated',
    TOENABLE: 'Activation in progress...',
    TODISABLE: 'Deactivation in progress...',
    ORDERED: 'Awaiting for approval',
}


def is_pending(status):
    return status in PENDING_STATUSES


def is_error(status, known=None):
    """True for anything the daemon left behind that is not a known status.

    ``known`` narrows the check to the statuses of one item type.
    """
    if status is None:
        return False
    if known is not None:
        return status not in known
    return status not in _LABELS and status not in PENDING_STATUSES


def allowed_transitions(current):
    if current in _WEB_TRANSITIONS:
        return _WEB_TRANSITIONS[current]
    if is_pending(current):
        # The daemon owns the row until it answers
        return ()
    return (TOCHANGE, TODELETE)


def check_transition(current, target):
    """Raise InvalidStatusTransition unless the panel may move an item from current to target."""
    if target in TERMINAL_STATUSES or target not in allowed_transitions(current):
        raise InvalidStatusTransition(current, target)
    return target


def humanize_status(status, show_error=False):
    if status in _LABELS:
        return _LABELS[status]
    return status if show_error else 'Unexpected error'


Entity = namedtuple('Entity', 'table id_column status_column name_column normal_statuses where')

_DOMAIN_STATUSES = (OK, DISABLED, TOADD, TOCHANGE, TORESTORE, TOENABLE, TODISABLE, TODELETE)
_ACCOUNT_STATUSES = (OK, DISABLED, TOADD, TOCHANGE, TOENABLE, TODISABLE, TODELETE)

ENTITIES = {
    'user': Entity('admin', 'admin_id', 'admin_status', 'admin_name',
                   (OK, TOADD, TOCHANGE, TOCHANGEPWD, TODELETE), "admin_type = 'user'"),
    'domain': Entity('domain', 'domain_id', 'domain_status', 'domain_name', _DOMAIN_STATUSES, None),
    'alias': Entity('domain_aliases', 'alias_id', 'alias_status', 'alias_name',
                    _DOMAIN_STATUSES + (ORDERED,), None),
    'subdomain': Entity('subdomain', 'subdomain_id', 'subdomain_status', 'subdomain_name',
                        _DOMAIN_STATUSES, None),
    'subdomain_alias': Entity('subdomain_alias', 'subdomain_alias_id', 'subdomain_alias_status',
                              'subdomain_alias_name', _DOMAIN_STATUSES, None),
    'custom_dns': Entity('domain_dns', 'domain_dns_id', 'domain_dns_status', 'domain_dns',
                         _DOMAIN_STATUSES, None),
    'ftp': Entity('ftp_users', 'userid', 'status', 'userid', _ACCOUNT_STATUSES, None),
    'mail': Entity('mail_users', 'mail_id', 'status', 'mail_addr', _ACCOUNT_STATUSES, None),
    'htaccess': Entity('htaccess', 'id', 'status', 'auth_name', _ACCOUNT_STATUSES, None),
    'htgroup': Entity('htaccess_groups', 'id', 'status', 'ugroup', _ACCOUNT_STATUSES, None),
    'htpasswd': Entity('htaccess_users', 'id', 'status', 'uname', _ACCOUNT_STATUSES, None),
    'ip': Entity('server_ips', 'ip_id', 'ip_status', 'ip_number', (OK, TOADD, TOCHANGE, TODELETE), None),
    'plugin': Entity('plugin', 'plugin_id', 'plugin_status', 'plugin_name',
                     ('enabled', 'disabled', 'uninstalled', 'installed', 'toinstall', 'toupdate',
                      'touninstall', TOENABLE, TODISABLE, TOCHANGE, TODELETE), None),
}


def get_entity(item_type):
    try:
        return ENTITIES[item_type]
    except KeyError:
        raise PanelError(f"Unknown item type: {item_type}") from None
