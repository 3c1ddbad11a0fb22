"""
Shared fixtures for the panel tests.

The panel talks to MySQL through pymysql. Tests swap mscp_panel.db.connect for
a sqlite-backed connection with the same surface (DictCursor-like rows,
cursors usable as context managers, begin/commit/rollback) so transactions
run against a real engine.
"""

import os
import shutil
import socket
import sqlite3
import tempfile
import unittest
from unittest import mock

from mscp_panel.daemon import DaemonNotifier

SCHEMA = """
CREATE TABLE admin (
    admin_id INTEGER PRIMARY KEY, admin_name TEXT, admin_pass TEXT, admin_type TEXT,
    created_by INTEGER DEFAULT 0, admin_status TEXT DEFAULT 'ok'
);
CREATE TABLE domain (
    domain_id INTEGER PRIMARY KEY, domain_name TEXT, domain_admin_id INTEGER,
    domain_status TEXT DEFAULT 'ok', domain_expires INTEGER DEFAULT 0
);
CREATE TABLE subdomain (
    subdomain_id INTEGER PRIMARY KEY, domain_id INTEGER, subdomain_name TEXT,
    subdomain_mount TEXT, subdomain_status TEXT DEFAULT 'ok'
);
CREATE TABLE domain_aliases (
    alias_id INTEGER PRIMARY KEY, domain_id INTEGER, alias_name TEXT,
    alias_mount TEXT, alias_status TEXT DEFAULT 'ok'
);
CREATE TABLE subdomain_alias (
    subdomain_alias_id INTEGER PRIMARY KEY, alias_id INTEGER, subdomain_alias_name TEXT,
    subdomain_alias_mount TEXT, subdomain_alias_status TEXT DEFAULT 'ok'
);
CREATE TABLE domain_dns (
    domain_dns_id INTEGER PRIMARY KEY, domain_id INTEGER, alias_id INTEGER DEFAULT 0,
    domain_dns TEXT, owned_by TEXT DEFAULT 'custom_dns_feature', domain_dns_status TEXT DEFAULT 'ok'
);
CREATE TABLE mail_users (
    mail_id INTEGER PRIMARY KEY, mail_acc TEXT, mail_forward TEXT DEFAULT '_no_',
    domain_id INTEGER, mail_type TEXT, sub_id INTEGER DEFAULT 0, status TEXT DEFAULT 'ok',
    po_active TEXT DEFAULT 'yes', mail_addr TEXT
);
CREATE TABLE ftp_users (
    userid TEXT PRIMARY KEY, admin_id INTEGER, gid INTEGER, status TEXT DEFAULT 'ok'
);
CREATE TABLE ftp_group (groupname TEXT PRIMARY KEY, gid INTEGER, members TEXT);
CREATE TABLE quotalimits (name TEXT);
CREATE TABLE quotatallies (name TEXT);
CREATE TABLE ssl_certs (
    cert_id INTEGER PRIMARY KEY, domain_id INTEGER, domain_type TEXT, status TEXT DEFAULT 'ok'
);
CREATE TABLE htaccess (
    id INTEGER PRIMARY KEY, dmn_id INTEGER, auth_name TEXT, path TEXT, status TEXT DEFAULT 'ok'
);
CREATE TABLE htaccess_groups (id INTEGER PRIMARY KEY, dmn_id INTEGER, ugroup TEXT, status TEXT DEFAULT 'ok');
CREATE TABLE htaccess_users (id INTEGER PRIMARY KEY, dmn_id INTEGER, uname TEXT, status TEXT DEFAULT 'ok');
CREATE TABLE server_ips (ip_id INTEGER PRIMARY KEY, ip_number TEXT, ip_status TEXT DEFAULT 'ok');
CREATE TABLE plugin (plugin_id INTEGER PRIMARY KEY, plugin_name TEXT, plugin_status TEXT DEFAULT 'enabled');
CREATE TABLE php_ini (id INTEGER PRIMARY KEY, admin_id INTEGER, domain_id INTEGER, domain_type TEXT);
CREATE TABLE autoreplies_log (`from` TEXT, `to` TEXT);
CREATE TABLE domain_traffic (domain_id INTEGER, dtraff_web INTEGER DEFAULT 0);
CREATE TABLE tickets (ticket_id INTEGER PRIMARY KEY, ticket_from INTEGER, ticket_to INTEGER);
CREATE TABLE user_gui_props (user_id INTEGER);
CREATE TABLE sql_database (sqld_id INTEGER PRIMARY KEY, domain_id INTEGER, sqld_name TEXT);
CREATE TABLE login (session_id TEXT, user_name TEXT);
CREATE TABLE daemon_outbox (
    id INTEGER PRIMARY KEY AUTOINCREMENT, reason TEXT NOT NULL,
    created_at TEXT NOT NULL, dispatched_at TEXT NULL
);
"""


class SQLiteCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._cursor.close()
        return False

    def execute(self, sql, params=()):
        self._cursor.execute(sql.replace('%s', '?'), tuple(params))

    @property
    def rowcount(self):
        return self._cursor.rowcount

    @property
    def lastrowid(self):
        return self._cursor.lastrowid

    def fetchone(self):
        row = self._cursor.fetchone()
        return dict(row) if row is not None else None

    def fetchall(self):
        return [dict(row) for row in self._cursor.fetchall()]


class SQLiteConnection:
    """Just enough of a pymysql connection for mscp_panel.db."""

    def __init__(self, path):
        self._conn = sqlite3.connect(path, isolation_level=None, timeout=5)
        self._conn.row_factory = sqlite3.Row

    def cursor(self):
        return SQLiteCursor(self._conn.cursor())

    def begin(self):
        self._conn.execute('BEGIN')

    def commit(self):
        if self._conn.in_transaction:
            self._conn.execute('COMMIT')

    def rollback(self):
        if self._conn.in_transaction:
            self._conn.execute('ROLLBACK')

    def close(self):
        self._conn.close()


class FakeNotifier(DaemonNotifier):
    """Notifier whose network exchange is replaced by a fixed outcome."""

    def __init__(self, outcome=True):
        super().__init__(daemon_type='imscp', host='127.0.0.1', port=9876)
        self.outcome = outcome
        self.exchanges = 0

    def _exchange(self):
        self.exchanges += 1
        return self.outcome


def unused_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


class DatabaseTestCase(unittest.TestCase):
    """Runs each test against a fresh sqlite database holding the panel tables."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmpdir, 'panel.db')

        raw = sqlite3.connect(self.db_path)
        raw.executescript(SCHEMA)
        raw.close()

        patcher = mock.patch('mscp_panel.db.connect', side_effect=lambda: SQLiteConnection(self.db_path))
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(shutil.rmtree, self.tmpdir, True)

    def run_sql(self, sql, params=()):
        raw = sqlite3.connect(self.db_path)
        try:
            raw.execute(sql, params)
            raw.commit()
        finally:
            raw.close()

    def rows(self, sql, params=()):
        raw = sqlite3.connect(self.db_path)
        raw.row_factory = sqlite3.Row
        try:
            return [dict(row) for row in raw.execute(sql, params).fetchall()]
        finally:
            raw.close()

    def value(self, sql, params=()):
        rows = self.rows(sql, params)
        return list(rows[0].values())[0] if rows else None

    def seed_customer(self, admin_id=7, name='john', domain_id=3, domain_name='example.com', reseller_id=2):
        self.run_sql(
            "INSERT INTO admin (admin_id, admin_name, admin_type, created_by) VALUES (?, ?, 'user', ?)",
            (admin_id, name, reseller_id)
        )
        self.run_sql(
            "INSERT INTO domain (domain_id, domain_name, domain_admin_id) VALUES (?, ?, ?)",
            (domain_id, domain_name, admin_id)
        )
        return {'user_id': admin_id, 'username': name, 'role': 'user'}
