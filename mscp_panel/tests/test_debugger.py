#!/usr/bin/env python3
"""
Tests for the debugger.
Run with: python -m pytest mscp_panel/tests/test_debugger.py -v
"""

from mscp_panel import debugger, outbox
from mscp_panel.errors import InvalidStatusTransition, NotFoundError, PanelError
from mscp_panel.tests.helpers import DatabaseTestCase, FakeNotifier


class TestDebugger(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.seed_customer()
        self.run_sql("INSERT INTO admin (admin_id, admin_name, admin_type, admin_status) "
                     "VALUES (1, 'admin', 'admin', 'weird')")
        self.run_sql("INSERT INTO subdomain VALUES (42, 3, 'blog', '/blog', 'todelete')")
        self.run_sql("INSERT INTO subdomain VALUES (43, 3, 'shop', '/shop', 'Could not create vhost')")
        self.run_sql("INSERT INTO ftp_users VALUES ('bob@example.com', 7, 2000, 'toadd')")
        self.run_sql("INSERT INTO plugin VALUES (1, 'Monitor', 'toinstall')")
        self.run_sql("INSERT INTO domain_aliases VALUES (4, 3, 'example.net', '/example.net', 'ordered')")

    def test_count_pending_requests(self):
        self.assertEqual(debugger.count_pending_requests(), 3)

    def test_list_status_errors(self):
        """Test that only unknown statuses are reported, admins accounts excluded."""
        errors = debugger.list_status_errors()

        self.assertEqual(errors, {
            'subdomain': [
                {'id': 43, 'name': 'shop', 'status': 'Could not create vhost', 'label': 'Unexpected error'},
            ],
        })

    def test_requeue_item(self):
        self.assertEqual(debugger.requeue_item('subdomain', 43), 'Done')

        self.assertEqual(self.value("SELECT subdomain_status FROM subdomain WHERE subdomain_id=43"), 'tochange')
        self.assertEqual(outbox.pending_count(), 1)
        self.assertEqual(debugger.list_status_errors(), {})

    def test_requeue_pending_item(self):
        with self.assertRaises(InvalidStatusTransition):
            debugger.requeue_item('subdomain', 42)

        self.assertEqual(outbox.pending_count(), 0)

    def test_requeue_healthy_plugin(self):
        """Test that an item in a normal status for its type is left alone."""
        self.run_sql("INSERT INTO plugin VALUES (2, 'Backup', 'enabled')")

        with self.assertRaises(InvalidStatusTransition) as ctx:
            debugger.requeue_item('plugin', 2)

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(self.value("SELECT plugin_status FROM plugin WHERE plugin_id=2"), 'enabled')
        self.assertEqual(outbox.pending_count(), 0)

    def test_requeue_failed_plugin(self):
        self.run_sql("INSERT INTO plugin VALUES (2, 'Backup', 'Could not install')")

        self.assertEqual(debugger.requeue_item('plugin', 2), 'Done')
        self.assertEqual(self.value("SELECT plugin_status FROM plugin WHERE plugin_id=2"), 'tochange')

    def test_requeue_unknown_type(self):
        with self.assertRaises(PanelError) as ctx:
            debugger.requeue_item('zone', 1)

        self.assertEqual(ctx.exception.status_code, 400)

    def test_requeue_missing_item(self):
        with self.assertRaises(NotFoundError):
            debugger.requeue_item('subdomain', 99)

    def test_run_pending(self):
        notifier = FakeNotifier()

        self.assertEqual(debugger.run_pending(notifier), (True, 'Daemon request successful.'))
        self.assertEqual(notifier.exchanges, 1)

    def test_run_pending_failure(self):
        self.assertEqual(debugger.run_pending(FakeNotifier(outcome=False)), (False, 'Daemon request failed.'))

    def test_run_nothing_pending(self):
        self.run_sql("DELETE FROM subdomain WHERE subdomain_id=42")
        self.run_sql("DELETE FROM ftp_users")
        self.run_sql("DELETE FROM plugin")
        notifier = FakeNotifier()

        success, message = debugger.run_pending(notifier)

        self.assertFalse(success)
        self.assertEqual(message, 'There is no pending request. Operation canceled.')
        self.assertFalse(notifier.is_sent)
