"""
Scheduled changes.

Each operation moves a parent item and everything that depends on it (FTP
accounts, mailboxes, SSL certificates, protected areas, ...) to a request
status in a single transaction, then wakes the backend daemon. The daemon
does the actual work and sets the final status.
"""

import logging
import posixpath
import re

from .cascade import scheduled_change
from .db import execute, fetch_one, query_all, query_one
from .errors import NotFoundError, PanelError
from .status import (
    DISABLED, OK, TOCHANGE, TODELETE, TODISABLE, TOENABLE, TORESTORE,
    ENTITIES, check_transition,
)
from . import config

logger = logging.getLogger(__name__)

MT_NORMAL_FORWARD = 'normal_forward'
MT_ALIAS_FORWARD = 'alias_forward'
MT_SUBDOM_FORWARD = 'subdom_forward'
MT_ALSSUB_FORWARD = 'alssub_forward'

DEFAULT_MAIL_ACCOUNTS = ('abuse', 'hostmaster', 'postmaster', 'webmaster')

# Catch-all accounts store '_no_' as forward list
CATCHALL_FORWARD = '_no_'

# SSL certificate domain types and the item types owning them
SSL_DOMAIN_TYPES = {
    'dmn': 'domain',
    'als': 'alias',
    'sub': 'subdomain',
    'alssub': 'subdomain_alias',
}

_CUSTOMER_DOMAINS = "SELECT domain_id FROM domain WHERE domain_admin_id = %s"


def normalize_path(path):
    """Collapse slashes and dot segments of a mount point ('/a//b/../c/' -> '/a/c')."""
    if not path:
        return '.'
    # normpath keeps a leading '//' as is
    return posixpath.normpath(re.sub('/+', '/', path.replace('\\', '/')))

def _split_list(value):
    return [item for item in (value or '').split(',') if item]

def _belongs_to(member, domain_name, include_subdomains=False):
    host = member.rpartition('@')[2]
    return host == domain_name or (include_subdomains and host.endswith('.' + domain_name))

def _get_ftp_group_of(conn, domain_name):
    return query_one(
        conn,
        """
            SELECT t1.groupname, t1.members
            FROM ftp_group AS t1
            JOIN ftp_users AS t2 ON t2.gid = t1.gid
            WHERE t2.userid LIKE %s
            LIMIT 1
        """,
        ('%@' + domain_name,)
    )

def _prune_ftp_group(conn, group, domain_name, include_subdomains=False):
    """Remove the FTP users of a domain from their group, dropping the group once empty."""
    members = [
        member for member in _split_list(group['members'])
        if not _belongs_to(member, domain_name, include_subdomains)
    ]
    _store_ftp_group_members(conn, group['groupname'], members)

def _store_ftp_group_members(conn, groupname, members):
    if members:
        execute(conn, "UPDATE ftp_group SET members=%s WHERE groupname=%s", (','.join(members), groupname))
    else:
        execute(conn, "DELETE FROM ftp_group WHERE groupname=%s", (groupname,))
        execute(conn, "DELETE FROM quotalimits WHERE name=%s", (groupname,))
        execute(conn, "DELETE FROM quotatallies WHERE name=%s", (groupname,))

def delete_autoreplies_logs(conn):
    """Drop autoreply logs of mail addresses that are gone or being deleted."""
    execute(
        conn,
        """
            DELETE FROM autoreplies_log
            WHERE `from` NOT IN (
                SELECT mail_addr FROM mail_users WHERE status <> %s AND mail_addr IS NOT NULL
            )
        """,
        (TODELETE,)
    )

def get_customer_main_domain(customer_id):
    domain = fetch_one(
        "SELECT domain_id, domain_name, domain_status FROM domain WHERE domain_admin_id=%s",
        (customer_id,)
    )
    if not domain:
        raise NotFoundError(f"Couldn't find domain of user with ID {customer_id}")
    return domain


# ============== Subdomains ==============

def delete_subdomain(notifier, user, subdomain_id):
    """Schedule deletion of a subdomain and everything under it."""
    row = fetch_one(
        """
            SELECT t1.domain_id, t1.subdomain_name, t1.subdomain_mount, t2.domain_name
            FROM subdomain AS t1
            JOIN domain AS t2 ON t2.domain_id = t1.domain_id
            WHERE t1.subdomain_id = %s
            AND t2.domain_admin_id = %s
        """,
        (subdomain_id, user['user_id'])
    )
    if not row:
        raise NotFoundError('Subdomain not found')

    name = f"{row['subdomain_name']}.{row['domain_name']}"

    with scheduled_change(notifier, f"delete the {name} subdomain",
                          "Couldn't delete subdomain. An unexpected error occurred.") as conn:
        group = _get_ftp_group_of(conn, name)
        if group:
            _prune_ftp_group(conn, group, name)

        execute(conn, "DELETE FROM php_ini WHERE domain_id=%s AND domain_type='sub'", (subdomain_id,))
        execute(conn, "UPDATE ftp_users SET status=%s WHERE userid LIKE %s", (TODELETE, '%@' + name))
        execute(
            conn,
            "UPDATE mail_users SET status=%s WHERE sub_id=%s AND mail_type LIKE %s",
            (TODELETE, subdomain_id, '%subdom_%')
        )
        execute(
            conn,
            "UPDATE ssl_certs SET status=%s WHERE domain_id=%s AND domain_type='sub'",
            (TODELETE, subdomain_id)
        )
        execute(
            conn,
            "UPDATE htaccess SET status=%s WHERE dmn_id=%s AND path LIKE %s",
            (TODELETE, row['domain_id'], normalize_path(row['subdomain_mount']) + '%')
        )
        execute(conn, "UPDATE subdomain SET subdomain_status=%s WHERE subdomain_id=%s", (TODELETE, subdomain_id))

    logger.info(f"Deletion of the {name} subdomain has been scheduled by {user['username']}")
    return 'Subdomain scheduled for deletion.'

def delete_subdomain_alias(notifier, user, subdomain_alias_id):
    """Schedule deletion of a subdomain of a domain alias."""
    row = fetch_one(
        f"""
            SELECT t1.subdomain_alias_name, t1.subdomain_alias_mount, t2.alias_name, t2.domain_id
            FROM subdomain_alias AS t1
            JOIN domain_aliases AS t2 ON t2.alias_id = t1.alias_id
            WHERE t1.subdomain_alias_id = %s
            AND t2.domain_id IN ({_CUSTOMER_DOMAINS})
        """,
        (subdomain_alias_id, user['user_id'])
    )
    if not row:
        raise NotFoundError('Subdomain not found')

    name = f"{row['subdomain_alias_name']}.{row['alias_name']}"

    with scheduled_change(notifier, f"delete the {name} subdomain",
                          "Couldn't delete subdomain. An unexpected error occurred.") as conn:
        group = _get_ftp_group_of(conn, name)
        if group:
            _prune_ftp_group(conn, group, name)

        execute(conn, "DELETE FROM php_ini WHERE domain_id=%s AND domain_type='subals'", (subdomain_alias_id,))
        execute(conn, "UPDATE ftp_users SET status=%s WHERE userid LIKE %s", (TODELETE, '%@' + name))
        execute(
            conn,
            "UPDATE mail_users SET status=%s WHERE sub_id=%s AND mail_type LIKE %s",
            (TODELETE, subdomain_alias_id, '%alssub_%')
        )
        execute(
            conn,
            "UPDATE ssl_certs SET status=%s WHERE domain_id=%s AND domain_type='alssub'",
            (TODELETE, subdomain_alias_id)
        )
        execute(
            conn,
            "UPDATE htaccess SET status=%s WHERE dmn_id=%s AND path LIKE %s",
            (TODELETE, row['domain_id'], normalize_path(row['subdomain_alias_mount']) + '%')
        )
        execute(
            conn,
            "UPDATE subdomain_alias SET subdomain_alias_status=%s WHERE subdomain_alias_id=%s",
            (TODELETE, subdomain_alias_id)
        )

    logger.info(f"Deletion of the {name} subdomain has been scheduled by {user['username']}")
    return 'Subdomain scheduled for deletion.'


# ============== Domain aliases ==============

def delete_domain_alias(notifier, user, alias_id):
    """Schedule deletion of a domain alias, its subdomains and their dependents."""
    row = fetch_one(
        """
            SELECT t1.alias_name, t1.alias_mount, t1.domain_id, t3.admin_name
            FROM domain_aliases AS t1
            JOIN domain AS t2 ON t2.domain_id = t1.domain_id
            JOIN admin AS t3 ON t3.admin_id = t2.domain_admin_id
            WHERE t1.alias_id = %s
            AND t2.domain_admin_id = %s
        """,
        (alias_id, user['user_id'])
    )
    if not row:
        raise NotFoundError('Domain alias not found')

    name = row['alias_name']
    subdomain_aliases = "SELECT subdomain_alias_id FROM subdomain_alias WHERE alias_id = %s"

    with scheduled_change(notifier, f"delete the {name} domain alias",
                          "Couldn't delete domain alias. An unexpected error occurred.") as conn:
        group = query_one(conn, "SELECT groupname, members FROM ftp_group WHERE groupname=%s", (row['admin_name'],))
        if group:
            _prune_ftp_group(conn, group, name, include_subdomains=True)

        execute(conn, "DELETE FROM domain_dns WHERE alias_id=%s", (alias_id,))
        execute(conn, "DELETE FROM php_ini WHERE domain_id=%s AND domain_type='als'", (alias_id,))
        execute(
            conn,
            f"DELETE FROM php_ini WHERE domain_type='subals' AND domain_id IN ({subdomain_aliases})",
            (alias_id,)
        )
        execute(
            conn,
            "UPDATE ftp_users SET status=%s WHERE userid LIKE %s OR userid LIKE %s",
            (TODELETE, '%@' + name, '%@%.' + name)
        )
        execute(
            conn,
            f"""
                UPDATE mail_users
                SET status=%s
                WHERE (sub_id = %s AND mail_type LIKE %s)
                OR (sub_id IN ({subdomain_aliases}) AND mail_type LIKE %s)
            """,
            (TODELETE, alias_id, '%alias_%', alias_id, '%alssub_%')
        )
        execute(
            conn,
            f"UPDATE ssl_certs SET status=%s WHERE domain_type='alssub' AND domain_id IN ({subdomain_aliases})",
            (TODELETE, alias_id)
        )
        execute(conn, "UPDATE ssl_certs SET status=%s WHERE domain_id=%s AND domain_type='als'", (TODELETE, alias_id))
        execute(
            conn,
            "UPDATE htaccess SET status=%s WHERE dmn_id=%s AND path LIKE %s",
            (TODELETE, row['domain_id'], normalize_path(row['alias_mount']) + '%')
        )
        execute(conn, "UPDATE subdomain_alias SET subdomain_alias_status=%s WHERE alias_id=%s", (TODELETE, alias_id))
        execute(conn, "UPDATE domain_aliases SET alias_status=%s WHERE alias_id=%s", (TODELETE, alias_id))

    logger.info(f"{user['username']} scheduled deletion of the {name} domain alias")
    return 'Domain alias successfully scheduled for deletion.'


# ============== Customers ==============

def _get_managed_customer(user, customer_id):
    sql = """
        SELECT t1.admin_name, t1.created_by, t2.domain_id, t2.domain_status
        FROM admin AS t1
        JOIN domain AS t2 ON t2.domain_admin_id = t1.admin_id
        WHERE t1.admin_id = %s
        AND t1.admin_type = 'user'
    """
    params = [customer_id]
    if user['role'] != 'admin':
        sql += " AND t1.created_by = %s"
        params.append(user['user_id'])

    customer = fetch_one(sql, params)
    if not customer:
        raise NotFoundError('Customer not found')
    return customer

def delete_customer(notifier, user, customer_id):
    """Schedule deletion of a customer account and every item it owns."""
    data = _get_managed_customer(user, customer_id)
    domain_id = data['domain_id']

    databases = fetch_one("SELECT COUNT(*) AS cnt FROM sql_database WHERE domain_id=%s", (domain_id,))
    if databases and databases['cnt']:
        raise PanelError('Customer SQL databases must be deleted first.', 409)

    aliases = "SELECT alias_id FROM domain_aliases WHERE domain_id = %s"

    with scheduled_change(notifier, f"delete the {data['admin_name']} customer account",
                          "Couldn't delete customer account. An unexpected error occurred.") as conn:
        execute(conn, "DELETE FROM login WHERE user_name=%s", (data['admin_name'],))

        # Protected areas
        execute(conn, "DELETE FROM htaccess WHERE dmn_id=%s", (domain_id,))
        execute(conn, "DELETE FROM htaccess_users WHERE dmn_id=%s", (domain_id,))
        execute(conn, "DELETE FROM htaccess_groups WHERE dmn_id=%s", (domain_id,))

        execute(conn, "DELETE FROM domain_traffic WHERE domain_id=%s", (domain_id,))
        execute(conn, "DELETE FROM domain_dns WHERE domain_id=%s", (domain_id,))
        _store_ftp_group_members(conn, data['admin_name'], [])
        execute(conn, "DELETE FROM tickets WHERE ticket_from=%s OR ticket_to=%s", (customer_id, customer_id))
        execute(conn, "DELETE FROM user_gui_props WHERE user_id=%s", (customer_id,))
        execute(conn, "DELETE FROM php_ini WHERE admin_id=%s", (customer_id,))

        execute(conn, "UPDATE ftp_users SET status=%s WHERE admin_id=%s", (TODELETE, customer_id))
        execute(conn, "UPDATE mail_users SET status=%s WHERE domain_id=%s", (TODELETE, domain_id))

        # SSL certificates first, the subqueries below need the alias and subdomain rows
        execute(conn, "UPDATE ssl_certs SET status=%s WHERE domain_type='dmn' AND domain_id=%s", (TODELETE, domain_id))
        execute(
            conn,
            f"UPDATE ssl_certs SET status=%s WHERE domain_type='als' AND domain_id IN ({aliases})",
            (TODELETE, domain_id)
        )
        execute(
            conn,
            """
                UPDATE ssl_certs SET status=%s
                WHERE domain_type='sub'
                AND domain_id IN (SELECT subdomain_id FROM subdomain WHERE domain_id = %s)
            """,
            (TODELETE, domain_id)
        )
        execute(
            conn,
            f"""
                UPDATE ssl_certs SET status=%s
                WHERE domain_type='alssub'
                AND domain_id IN (SELECT subdomain_alias_id FROM subdomain_alias WHERE alias_id IN ({aliases}))
            """,
            (TODELETE, domain_id)
        )

        execute(
            conn,
            f"UPDATE subdomain_alias SET subdomain_alias_status=%s WHERE alias_id IN ({aliases})",
            (TODELETE, domain_id)
        )
        execute(conn, "UPDATE domain_aliases SET alias_status=%s WHERE domain_id=%s", (TODELETE, domain_id))
        execute(conn, "UPDATE subdomain SET subdomain_status=%s WHERE domain_id=%s", (TODELETE, domain_id))
        execute(conn, "UPDATE domain SET domain_status=%s WHERE domain_id=%s", (TODELETE, domain_id))
        execute(conn, "UPDATE admin SET admin_status=%s WHERE admin_id=%s", (TODELETE, customer_id))

        delete_autoreplies_logs(conn)

    logger.info(f"{user['username']} scheduled deletion of the {data['admin_name']} customer account")
    return 'Customer account successfully scheduled for deletion.'

def change_customer_status(notifier, user, customer_id, action):
    """Schedule activation or deactivation of a customer account."""
    if action == 'deactivate':
        new_status, expected = TODISABLE, OK
    elif action == 'activate':
        new_status, expected = TOENABLE, DISABLED
    else:
        raise PanelError(f"Unknown action: {action}")

    data = _get_managed_customer(user, customer_id)
    domain_id = data['domain_id']
    check_transition(data['domain_status'], new_status)

    with scheduled_change(notifier, f"{action} the {data['admin_name']} customer account",
                          f"Couldn't {action} customer account. An unexpected error occurred.") as conn:
        if action == 'deactivate':
            if config.HARD_MAIL_SUSPENSION:
                # SMTP, IMAP and POP disabled
                execute(
                    conn,
                    "UPDATE mail_users SET status=%s, po_active='no' WHERE domain_id=%s",
                    (TODISABLE, domain_id)
                )
            else:
                execute(conn, "UPDATE mail_users SET po_active='no' WHERE domain_id=%s", (domain_id,))
        else:
            execute(
                conn,
                """
                    UPDATE mail_users
                    SET status=%s, po_active = CASE WHEN mail_type LIKE %s THEN 'yes' ELSE po_active END
                    WHERE domain_id = %s
                    AND status = %s
                """,
                (TOENABLE, '%_mail%', domain_id, DISABLED)
            )
            execute(
                conn,
                """
                    UPDATE mail_users
                    SET po_active = CASE WHEN mail_type LIKE %s THEN 'yes' ELSE po_active END
                    WHERE domain_id = %s
                    AND status <> %s
                    AND status <> %s
                """,
                ('%_mail%', domain_id, DISABLED, TOENABLE)
            )

        execute(conn, "UPDATE ftp_users SET status=%s WHERE admin_id=%s", (new_status, customer_id))
        execute(conn, "UPDATE htaccess SET status=%s WHERE dmn_id=%s", (new_status, domain_id))
        execute(conn, "UPDATE htaccess_groups SET status=%s WHERE dmn_id=%s", (new_status, domain_id))
        execute(conn, "UPDATE htaccess_users SET status=%s WHERE dmn_id=%s", (new_status, domain_id))
        execute(
            conn,
            "UPDATE domain SET domain_status=%s WHERE domain_id=%s AND domain_status=%s",
            (new_status, domain_id, expected)
        )
        execute(conn, "UPDATE subdomain SET subdomain_status=%s WHERE domain_id=%s", (new_status, domain_id))
        execute(conn, "UPDATE domain_aliases SET alias_status=%s WHERE domain_id=%s", (new_status, domain_id))
        execute(
            conn,
            """
                UPDATE subdomain_alias SET subdomain_alias_status=%s
                WHERE alias_id IN (SELECT alias_id FROM domain_aliases WHERE domain_id = %s)
            """,
            (new_status, domain_id)
        )
        execute(conn, "UPDATE domain_dns SET domain_dns_status=%s WHERE domain_id=%s", (new_status, domain_id))

    logger.info(f"{user['username']}: scheduled {action} of customer account: {data['admin_name']}")
    return f"Customer account successfully scheduled for {action.replace('ate', 'ation')}."


# ============== Mail ==============

def _is_protected_mail_account(row):
    if not config.PROTECT_DEFAULT_EMAIL_ADDRESSES:
        return False
    if row['mail_type'] in (MT_NORMAL_FORWARD, MT_ALIAS_FORWARD) and row['mail_acc'] in DEFAULT_MAIL_ACCOUNTS:
        return True
    return row['mail_acc'] == 'webmaster' and row['mail_type'] in (MT_SUBDOM_FORWARD, MT_ALSSUB_FORWARD)

def delete_mail_account(notifier, user, mail_id):
    """Schedule deletion of a mail account and detach it from forwards and catch-alls."""
    domain = get_customer_main_domain(user['user_id'])
    row = fetch_one(
        "SELECT mail_id, mail_acc, mail_addr, mail_type FROM mail_users WHERE mail_id=%s AND domain_id=%s",
        (mail_id, domain['domain_id'])
    )
    if not row:
        raise NotFoundError('Mail account not found')

    if _is_protected_mail_account(row):
        raise PanelError('Default mail accounts cannot be deleted.', 403)

    address = row['mail_addr']

    with scheduled_change(notifier, f"delete the {address} mail account",
                          "Couldn't delete mail account. An unexpected error occurred.") as conn:
        execute(conn, "UPDATE mail_users SET status=%s WHERE mail_id=%s", (TODELETE, mail_id))

        # Forward and catch-all accounts listing the deleted address lose it;
        # those left with an empty list are deleted too.
        referrers = query_all(
            conn,
            "SELECT mail_id, mail_acc, mail_forward FROM mail_users WHERE mail_id <> %s AND (mail_acc LIKE %s OR mail_forward LIKE %s)",
            (mail_id, f"%{address}%", f"%{address}%")
        )
        for referrer in referrers:
            mail_acc, mail_forward = referrer['mail_acc'], referrer['mail_forward']

            if mail_forward == CATCHALL_FORWARD:
                entries = _split_list(mail_acc)
                if address not in entries:
                    continue
                mail_acc = ','.join(entry for entry in entries if entry != address)
                emptied = not mail_acc
            else:
                entries = _split_list(mail_forward)
                if address not in entries:
                    continue
                mail_forward = ','.join(entry for entry in entries if entry != address)
                emptied = not mail_forward

            if emptied:
                execute(conn, "UPDATE mail_users SET status=%s WHERE mail_id=%s", (TODELETE, referrer['mail_id']))
            else:
                execute(
                    conn,
                    "UPDATE mail_users SET status=%s, mail_acc=%s, mail_forward=%s WHERE mail_id=%s",
                    (TOCHANGE, mail_acc, mail_forward, referrer['mail_id'])
                )

        delete_autoreplies_logs(conn)

    logger.info(f"{user['username']} scheduled deletion of the {address} mail account")
    return 'Mail account successfully scheduled for deletion.'


# ============== FTP ==============

def delete_ftp_account(notifier, user, userid):
    row = fetch_one(
        """
            SELECT t2.admin_name AS groupname
            FROM ftp_users AS t1
            JOIN admin AS t2 ON t2.admin_id = t1.admin_id
            WHERE t1.userid = %s
            AND t1.admin_id = %s
        """,
        (userid, user['user_id'])
    )
    if not row:
        raise NotFoundError('FTP account not found')

    with scheduled_change(notifier, f"delete the {userid} FTP account",
                          "Couldn't delete FTP account. An unexpected error occurred.") as conn:
        group = query_one(conn, "SELECT groupname, members FROM ftp_group WHERE groupname=%s", (row['groupname'],))
        if group:
            members = _split_list(group['members'])
            if userid in members:
                members.remove(userid)
                _store_ftp_group_members(conn, group['groupname'], members)

        execute(conn, "UPDATE ftp_users SET status=%s WHERE userid=%s", (TODELETE, userid))

    logger.info(f"An FTP account has been deleted by {user['username']}")
    return 'FTP account successfully deleted.'


# ============== DNS, protected areas, SSL ==============

def delete_custom_dns_record(notifier, user, dns_id):
    with scheduled_change(notifier, f"delete custom DNS record {dns_id}",
                          "Couldn't delete DNS record. An unexpected error occurred.") as conn:
        updated = execute(
            conn,
            f"""
                UPDATE domain_dns
                SET domain_dns_status=%s
                WHERE domain_dns_id = %s
                AND owned_by = 'custom_dns_feature'
                AND domain_dns_status NOT IN ('toadd', 'tochange', 'todelete')
                AND domain_id IN ({_CUSTOMER_DOMAINS})
            """,
            (TODELETE, dns_id, user['user_id'])
        )
        if not updated:
            raise NotFoundError('DNS record not found')

    logger.info(f"{user['username']} scheduled deletion of a custom DNS record")
    return 'Custom DNS record successfully scheduled for deletion.'

def delete_protected_area(notifier, user, area_id):
    domain = get_customer_main_domain(user['user_id'])

    with scheduled_change(notifier, f"delete protected area {area_id}",
                          "Couldn't delete protected area. An unexpected error occurred.") as conn:
        updated = execute(
            conn,
            "UPDATE htaccess SET status=%s WHERE id=%s AND dmn_id=%s AND status=%s",
            (TODELETE, area_id, domain['domain_id'], OK)
        )
        if not updated:
            raise NotFoundError('Protected area not found')

    logger.info(f"{user['username']} deleted protected area with ID {area_id}")
    return 'Protected area successfully scheduled for deletion.'

def _get_owned_domain_name(user, domain_type, domain_id):
    if domain_type not in SSL_DOMAIN_TYPES:
        raise PanelError(f"Unknown domain type: {domain_type}")

    queries = {
        'dmn': "SELECT domain_name AS name, NULL AS parent FROM domain WHERE domain_id=%s AND domain_admin_id=%s",
        'als': f"""
            SELECT alias_name AS name, NULL AS parent
            FROM domain_aliases
            WHERE alias_id=%s AND domain_id IN ({_CUSTOMER_DOMAINS})
        """,
        'sub': f"""
            SELECT t1.subdomain_name AS name, t2.domain_name AS parent
            FROM subdomain AS t1
            JOIN domain AS t2 ON t2.domain_id = t1.domain_id
            WHERE t1.subdomain_id=%s AND t1.domain_id IN ({_CUSTOMER_DOMAINS})
        """,
        'alssub': f"""
            SELECT t1.subdomain_alias_name AS name, t2.alias_name AS parent
            FROM subdomain_alias AS t1
            JOIN domain_aliases AS t2 ON t2.alias_id = t1.alias_id
            WHERE t1.subdomain_alias_id=%s AND t2.domain_id IN ({_CUSTOMER_DOMAINS})
        """,
    }
    row = fetch_one(queries[domain_type], (domain_id, user['user_id']))
    if not row:
        raise NotFoundError('Domain not found')
    if row['parent']:
        return f"{row['name']}.{row['parent']}"
    return row['name']

def delete_ssl_certificate(notifier, user, domain_type, domain_id, cert_id):
    """Schedule deletion of an SSL certificate; the owning domain gets reconfigured."""
    domain_name = _get_owned_domain_name(user, domain_type, domain_id)
    entity = ENTITIES[SSL_DOMAIN_TYPES[domain_type]]

    with scheduled_change(notifier, f"delete the SSL certificate of {domain_name}",
                          'Could not delete SSL certificate. An unexpected error occurred.') as conn:
        updated = execute(
            conn,
            "UPDATE ssl_certs SET status=%s WHERE cert_id=%s AND domain_id=%s AND domain_type=%s",
            (TODELETE, cert_id, domain_id, domain_type)
        )
        if not updated:
            raise NotFoundError('SSL certificate not found')

        execute(
            conn,
            f"UPDATE `{entity.table}` SET `{entity.status_column}`=%s WHERE `{entity.id_column}`=%s",
            (TOCHANGE, domain_id)
        )

    logger.info(f"{user['username']} deleted SSL certificate for the {domain_name} domain.")
    return 'SSL certificate successfully scheduled for deletion.'


# ============== Backups ==============

def schedule_backup_restore(notifier, user):
    domain = get_customer_main_domain(user['user_id'])
    check_transition(domain['domain_status'], TORESTORE)

    with scheduled_change(notifier, f"restore the backup of {domain['domain_name']}",
                          "Couldn't schedule backup restoration. An unexpected error occurred.") as conn:
        execute(
            conn,
            "UPDATE domain SET domain_status=%s WHERE domain_admin_id=%s AND domain_status=%s",
            (TORESTORE, user['user_id'], OK)
        )

    logger.info(f"A backup restore has been scheduled by {user['username']}.")
    return 'Backup has been successfully scheduled for restoration.'
