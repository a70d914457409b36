"""
Health Check Endpoints
Liveness and readiness probes for the receipt service.
"""
import os
from datetime import datetime

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from quittances.extensions import db
from quittances.utils.files import resolve_storage_path

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint for basic connectivity checks.
    Returns: 200 OK with pong message
    """
    return jsonify({
        'status': 'ok',
        'message': 'pong',
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    """
    Readiness probe - checks the database and the receipts directory.

    Returns:
        200: Application is ready
        503: Application is not ready
    """
    checks = {
        'database': False,
        'receipts_dir': False,
    }
    errors = []

    try:
        db.session.execute(text('SELECT 1'))
        checks['database'] = True
    except Exception as e:
        errors.append(f"Database: {str(e)}")

    try:
        receipts_dir = resolve_storage_path(current_app.config['RECEIPTS_DIR'])
        checks['receipts_dir'] = os.access(receipts_dir, os.W_OK)
        if not checks['receipts_dir']:
            errors.append(f"Receipts directory not writable: {receipts_dir}")
    except OSError as e:
        errors.append(f"Receipts directory: {str(e)}")

    all_checks_passed = all(checks.values())
    response = {
        'status': 'ready' if all_checks_passed else 'not_ready',
        'checks': checks,
        'timestamp': datetime.utcnow().isoformat()
    }
    if errors:
        response['errors'] = errors

    return jsonify(response), 200 if all_checks_passed else 503
