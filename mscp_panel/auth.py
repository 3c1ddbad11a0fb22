import jwt
import time
import bcrypt
import logging
from functools import wraps
from datetime import datetime, timedelta

from flask import request, jsonify

from .db import fetch_one
from .errors import PanelError
from . import config

logger = logging.getLogger(__name__)

ROLES = ('admin', 'reseller', 'user')


def hash_password(password):
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

def verify_password(password, hashed):
    """Verify a password against its hash. Hashes other than bcrypt never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        return False

def create_jwt_token(user_id, username, role):
    """Create a JWT token."""
    payload = {
        'user_id': user_id,
        'username': username,
        'role': role,
        'exp': datetime.utcnow() + timedelta(hours=config.JWT_EXPIRY_HOURS),
        'iat': datetime.utcnow()
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm='HS256')

def verify_jwt_token(token):
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=['HS256'])
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

def token_required(f):
    """Decorator to require valid JWT token."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None

        if 'Authorization' in request.headers:
            try:
                token = request.headers['Authorization'].split(" ")[1]
            except IndexError:
                return jsonify({'error': 'Invalid token format'}), 401

        if not token:
            return jsonify({'error': 'Token required'}), 401

        payload = verify_jwt_token(token)
        if not payload:
            return jsonify({'error': 'Invalid or expired token'}), 401

        request.current_user = payload
        return f(*args, **kwargs)

    return decorated

def roles_required(*roles):
    """Decorator restricting an endpoint to the given account types. Use after token_required."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not getattr(request, 'current_user', None):
                return jsonify({'error': 'Unauthorized'}), 401

            if request.current_user.get('role') not in roles:
                return jsonify({'error': 'Access denied'}), 403

            return f(*args, **kwargs)

        return decorated

    return decorator

def _check_customer_account(user):
    account = fetch_one(
        """
            SELECT t1.domain_expires, t1.domain_status, t2.admin_status
            FROM domain AS t1
            JOIN admin AS t2 ON t2.admin_id = t1.domain_admin_id
            WHERE t1.domain_admin_id = %s
        """,
        (user['id'],)
    )
    if not account:
        logger.error(f"Account data not found in database for the {user['username']} user")
        raise PanelError('An unexpected error occurred. Please contact your reseller.', 403)

    if 'disabled' in (account['admin_status'], account['domain_status']):
        raise PanelError('Your account has been suspended. Please contact your reseller.', 403)

    expires = account['domain_expires'] or 0
    if 0 < expires < time.time():
        raise PanelError('Your account is expired. Please contact your reseller.', 403)

def authenticate_user(username, password):
    """Authenticate user and return user data if valid.

    Raises PanelError for customers whose account is suspended or expired.
    """
    user = fetch_one(
        "SELECT admin_id AS id, admin_name AS username, admin_pass, admin_type AS role FROM admin WHERE admin_name=%s",
        (username,)
    )

    if not user or not verify_password(password, user['admin_pass']):
        return None

    if user['role'] == 'user':
        _check_customer_account(user)

    return user
