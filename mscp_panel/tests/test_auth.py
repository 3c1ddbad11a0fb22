#!/usr/bin/env python3
"""
Unit tests for panel authentication and access control.
Run with: python -m pytest mscp_panel/tests/test_auth.py -v
"""

import time
import unittest
from unittest import mock

import jwt

from mscp_panel import config
from mscp_panel.auth import (
    hash_password, verify_password, create_jwt_token, verify_jwt_token, authenticate_user
)
from mscp_panel.errors import PanelError
from mscp_panel.rbac import RBAC
from mscp_panel.tests.helpers import DatabaseTestCase


class TestAuth(unittest.TestCase):
    """Test authentication functions."""

    def test_verify_password(self):
        """Test password verification."""
        hashed = hash_password("test123")

        self.assertNotEqual(hashed, "test123")
        self.assertTrue(verify_password("test123", hashed))
        self.assertFalse(verify_password("wrong", hashed))

    def test_legacy_hash_never_matches(self):
        """Test that a non-bcrypt hash is rejected instead of raising."""
        self.assertFalse(verify_password("test123", "cc03e747a6afbbcbf8be7668acfebee5"))

    def test_jwt_token_creation_and_verification(self):
        token = create_jwt_token(7, "john", "user")
        self.assertIsInstance(token, str)

        payload = verify_jwt_token(token)
        self.assertIsNotNone(payload)
        self.assertEqual(payload['user_id'], 7)
        self.assertEqual(payload['username'], "john")
        self.assertEqual(payload['role'], "user")

    def test_jwt_token_invalid(self):
        self.assertIsNone(verify_jwt_token("invalid.token.here"))

    def test_jwt_token_different_secret(self):
        """Test JWT token signed with another secret fails verification."""
        token = jwt.encode({'user_id': 1, 'username': 'x', 'role': 'admin'}, 'another-secret', algorithm='HS256')
        self.assertIsNone(verify_jwt_token(token))

    def test_jwt_token_expired(self):
        with mock.patch.object(config, 'JWT_EXPIRY_HOURS', -1):
            token = create_jwt_token(7, "john", "user")

        self.assertIsNone(verify_jwt_token(token))


class TestAuthenticateUser(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.seed_customer()
        self.run_sql("UPDATE admin SET admin_pass=?", (hash_password('secret'),))

    def test_valid_credentials(self):
        user = authenticate_user('john', 'secret')

        self.assertEqual((user['id'], user['username'], user['role']), (7, 'john', 'user'))

    def test_invalid_credentials(self):
        self.assertIsNone(authenticate_user('john', 'wrong'))
        self.assertIsNone(authenticate_user('nobody', 'secret'))

    def test_suspended_account(self):
        self.run_sql("UPDATE admin SET admin_status='disabled'")

        with self.assertRaises(PanelError) as ctx:
            authenticate_user('john', 'secret')
        self.assertEqual(ctx.exception.status_code, 403)

    def test_expired_account(self):
        self.run_sql("UPDATE domain SET domain_expires=?", (int(time.time()) - 3600,))

        with self.assertRaises(PanelError) as ctx:
            authenticate_user('john', 'secret')
        self.assertEqual(ctx.exception.message, 'Your account is expired. Please contact your reseller.')


class TestRBAC(DatabaseTestCase):
    """Test role-based access control."""

    def setUp(self):
        super().setUp()
        self.seed_customer(reseller_id=2)

    def test_roles(self):
        self.assertTrue(RBAC.is_admin({'role': 'admin'}))
        self.assertFalse(RBAC.is_admin({'role': 'reseller'}))
        self.assertTrue(RBAC.is_reseller({'role': 'reseller'}))

    def test_can_manage_customer(self):
        """Test that resellers only manage the customers they created."""
        self.assertTrue(RBAC.can_manage_customer({'user_id': 1, 'role': 'admin'}, 7))
        self.assertTrue(RBAC.can_manage_customer({'user_id': 2, 'role': 'reseller'}, 7))
        self.assertFalse(RBAC.can_manage_customer({'user_id': 3, 'role': 'reseller'}, 7))
        self.assertFalse(RBAC.can_manage_customer({'user_id': 7, 'role': 'user'}, 7))
        self.assertFalse(RBAC.can_manage_customer({'user_id': 2, 'role': 'reseller'}, 99))


if __name__ == '__main__':
    unittest.main()
