"""
Health Check Endpoints
Provides endpoints for liveness and readiness checks and metrics.
"""
from flask import Blueprint, jsonify, current_app
from datetime import datetime, timezone
from sqlalchemy import text

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _timestamp():
    return datetime.now(timezone.utc).isoformat()


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint for basic connectivity checks.
    Returns: 200 OK with pong message
    """
    return jsonify({
        'status': 'ok',
        'message': 'pong',
        'timestamp': _timestamp()
    }), 200


@health_bp.route('/live', methods=['GET'])
def liveness():
    """
    Liveness probe - the process is up and serving requests.

    Returns:
        200: Application is alive
    """
    return jsonify({
        'status': 'alive',
        'timestamp': _timestamp()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness():
    """
    Readiness probe - checks if application is ready to serve traffic.
    Validates the database and the session store sweep.

    Returns:
        200: Application is ready
        503: Application is not ready
    """
    checks = {
        'database': False,
        'session_store': False,
    }
    errors = []

    try:
        from gatekeeper.extensions import db
        db.session.execute(text('SELECT 1'))
        checks['database'] = True
    except Exception as e:
        current_app.logger.error(f"Readiness check failed for database: {e}")
        errors.append(f"Database: {str(e)}")

    session_store = current_app.extensions.get('session_store')
    if session_store is not None and session_store.running:
        checks['session_store'] = True
    else:
        errors.append('Session store: cleanup sweep not running')

    all_checks_passed = all(checks.values())
    status_code = 200 if all_checks_passed else 503

    response = {
        'status': 'ready' if all_checks_passed else 'not_ready',
        'checks': checks,
        'sessions': session_store.count() if session_store is not None else 0,
        'timestamp': _timestamp()
    }

    if errors:
        response['errors'] = errors

    return jsonify(response), status_code


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Gatekeeper metrics in Prometheus-compatible format.
    Can be scraped by monitoring systems.

    Returns:
        200: Metrics in Prometheus text format
    """
    session_store = current_app.extensions['session_store']
    body = current_app.extensions['metrics'].render(active_sessions=session_store.count())
    return body, 200, {'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}
