from flask import Flask, request, jsonify
import logging

import click

from . import config, debugger, jobs
from .auth import authenticate_user, create_jwt_token, roles_required, token_required
from .daemon import get_notifier
from .errors import PanelError
from .outbox import OutboxRelay
from .rbac import RBAC
from .schema import ensure_database_schema

app = Flask(__name__)
app.config['JSON_SORT_KEYS'] = False

# Setup logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _done(message, status_code=200):
    return jsonify({'ok': True, 'message': message}), status_code

# ============== Auth Endpoints ==============

@app.route('/auth/login', methods=['POST'])
def login():
    """Login endpoint: return JWT token."""
    data = request.json or {}
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return jsonify({'error': 'username and password required'}), 400

    user = authenticate_user(username, password)

    if not user:
        return jsonify({'error': 'Invalid credentials'}), 401

    token = create_jwt_token(user['id'], user['username'], user['role'])
    logger.info(f"{user['username']} logged in")

    return jsonify({
        'ok': True,
        'token': token,
        'user': {
            'id': user['id'],
            'username': user['username'],
            'role': user['role']
        }
    }), 200

@app.route('/auth/verify', methods=['GET'])
@token_required
def verify_token():
    """Verify current token."""
    return jsonify({
        'ok': True,
        'user': request.current_user
    }), 200

# ============== Customer area ==============

@app.route('/subdomains/<int:subdomain_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_subdomain(subdomain_id):
    return _done(jobs.delete_subdomain(get_notifier(), request.current_user, subdomain_id))

@app.route('/subdomain-aliases/<int:subdomain_alias_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_subdomain_alias(subdomain_alias_id):
    return _done(jobs.delete_subdomain_alias(get_notifier(), request.current_user, subdomain_alias_id))

@app.route('/aliases/<int:alias_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_domain_alias(alias_id):
    return _done(jobs.delete_domain_alias(get_notifier(), request.current_user, alias_id))

@app.route('/mail/<int:mail_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_mail_account(mail_id):
    return _done(jobs.delete_mail_account(get_notifier(), request.current_user, mail_id))

@app.route('/ftp/<userid>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_ftp_account(userid):
    return _done(jobs.delete_ftp_account(get_notifier(), request.current_user, userid))

@app.route('/dns/<int:dns_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_custom_dns_record(dns_id):
    return _done(jobs.delete_custom_dns_record(get_notifier(), request.current_user, dns_id))

@app.route('/protected-areas/<int:area_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_protected_area(area_id):
    return _done(jobs.delete_protected_area(get_notifier(), request.current_user, area_id))

@app.route('/ssl/<domain_type>/<int:domain_id>/<int:cert_id>', methods=['DELETE'])
@token_required
@roles_required('user')
def delete_ssl_certificate(domain_type, domain_id, cert_id):
    return _done(jobs.delete_ssl_certificate(
        get_notifier(), request.current_user, domain_type, domain_id, cert_id
    ))

@app.route('/backup/restore', methods=['POST'])
@token_required
@roles_required('user')
def restore_backup():
    """Schedule restoration of the customer's last backup."""
    return _done(jobs.schedule_backup_restore(get_notifier(), request.current_user))

# ============== Customer management (admin, reseller) ==============

@app.route('/customers/<int:customer_id>', methods=['DELETE'])
@token_required
@roles_required('admin', 'reseller')
def delete_customer(customer_id):
    if not RBAC.can_manage_customer(request.current_user, customer_id):
        return jsonify({'error': 'Customer not found'}), 404

    return _done(jobs.delete_customer(get_notifier(), request.current_user, customer_id))

@app.route('/customers/<int:customer_id>/status', methods=['POST'])
@token_required
@roles_required('admin', 'reseller')
def change_customer_status(customer_id):
    """Activate or deactivate a customer account: {"action": "activate"|"deactivate"}."""
    data = request.json or {}
    action = data.get('action')

    if action not in ('activate', 'deactivate'):
        return jsonify({'error': 'action must be activate or deactivate'}), 400

    if not RBAC.can_manage_customer(request.current_user, customer_id):
        return jsonify({'error': 'Customer not found'}), 404

    return _done(jobs.change_customer_status(get_notifier(), request.current_user, customer_id, action))

# ============== Debugger (admin only) ==============

@app.route('/debugger', methods=['GET'])
@token_required
@roles_required('admin')
def debugger_overview():
    """Pending requests and items the daemon left in error."""
    return jsonify({
        'ok': True,
        'pending_requests': debugger.count_pending_requests(),
        'errors': debugger.list_status_errors()
    }), 200

@app.route('/debugger/run', methods=['POST'])
@token_required
@roles_required('admin')
def debugger_run():
    success, message = debugger.run_pending(get_notifier())
    if not success:
        return jsonify({'ok': False, 'message': message}), 200
    return _done(message)

@app.route('/debugger/items/<item_type>/<item_id>/requeue', methods=['POST'])
@token_required
@roles_required('admin')
def debugger_requeue(item_type, item_id):
    return _done(debugger.requeue_item(item_type, item_id))

# ============== Health Check ==============

@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'service': 'MSCP Webpanel',
        'version': config.PANEL_VERSION,
        'daemon': f"{config.DAEMON_TYPE}://{config.DAEMON_HOST}:{config.DAEMON_PORT}"
    }), 200

# ============== Error Handlers ==============

@app.errorhandler(PanelError)
def panel_error(e):
    return jsonify({'error': e.message}), e.status_code

@app.errorhandler(404)
def not_found(e):
    return jsonify({'error': 'Not found'}), 404

@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({'error': 'Method not allowed'}), 405

@app.errorhandler(500)
def server_error(e):
    return jsonify({'error': 'Internal server error'}), 500

# ============== CLI ==============

@app.cli.command('init-db')
def init_db_command():
    """Create the tables the panel needs on top of the legacy schema."""
    if not ensure_database_schema():
        raise click.ClickException('Database schema could not be updated')
    click.echo('Database schema is up to date')

@app.cli.command('relay-outbox')
@click.option('--once', is_flag=True, help='Process pending requests once and exit.')
@click.option('--interval', type=float, default=config.OUTBOX_RELAY_INTERVAL, show_default=True,
              help='Seconds between two runs.')
def relay_outbox_command(once, interval):
    """Send a daemon request for committed changes that were never announced."""
    relay = OutboxRelay()
    if once:
        count = relay.run_once()
        click.echo(f"{count} pending request(s) dispatched")
        return

    relay.run_forever(interval)


if __name__ == '__main__':
    ensure_database_schema()
    app.run(host='0.0.0.0', port=5000, debug=True)
