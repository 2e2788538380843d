"""
Error handling and logging utilities for the gatekeeper
Provides centralized logging setup and the global Flask error handlers
"""
import logging
import os
import re
import traceback
from datetime import datetime, timezone
from flask import jsonify, request, render_template

from .exceptions import AppException, RealmLockedException


def new_error_id() -> str:
    """Timestamp-based id used to correlate a response with its log lines."""
    return datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')


def setup_logging(app):
    """Configure application logging"""
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper())
    log_file = app.config.get('LOG_FILE')

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    app.logger.addHandler(console_handler)

    # File handler (disabled when LOG_FILE is empty, e.g. under test)
    if log_file:
        if not os.path.isabs(log_file):
            basedir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
            log_file = os.path.join(basedir, log_file)
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(log_level)

    # Service-layer modules log through logging.getLogger('gatekeeper.*')
    package_logger = logging.getLogger('gatekeeper')
    package_logger.setLevel(log_level)
    if not package_logger.handlers:
        package_logger.addHandler(console_handler)

    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.setLevel(log_level)

    return app.logger


def sanitize_request_data(data: str) -> str:
    """
    Remove sensitive data from request strings for safe logging.

    Examples:
        >>> sanitize_request_data('{"password": "secret123"}')
        '{"password": "[REDACTED]"}'
    """
    for field in ('password', 'token', 'secret', 'flag'):
        data = re.sub(rf'("{field}"\s*:\s*")[^"]*(")', r'\1[REDACTED]\2', data, flags=re.IGNORECASE)
        data = re.sub(rf'({field}=)[^&]*', r'\1[REDACTED]', data, flags=re.IGNORECASE)
    return data


def wants_json() -> bool:
    """True when the caller expects a JSON error body rather than a page."""
    if request.is_json:
        return True
    best = request.accept_mimetypes.best
    return best == 'application/json'


def _forbidden_response():
    # Generic branded page only; nothing about the requested realm
    if wants_json():
        return jsonify({
            'status': 'error',
            'error': 'Forbidden',
            'message': 'Access denied',
            'status_code': 403
        }), 403
    return render_template('errors/403.html'), 403


def register_error_handlers(app):
    """Register global error handlers for the Flask app"""

    @app.errorhandler(RealmLockedException)
    def realm_locked_error(error):
        """Handle navigation to a realm that is still locked"""
        app.logger.warning(
            f"Access denied: user={error.user_id or 'anonymous'} "
            f"realm={error.realm_name} ip={request.remote_addr}"
        )
        return _forbidden_response()

    @app.errorhandler(AppException)
    def app_exception_error(error):
        """Handle AppException raised outside @handle_errors"""
        app.logger.warning(f"{error.error_type} on {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 Bad Request errors"""
        app.logger.warning(f"Bad request from {request.remote_addr}: {request.url}")
        return jsonify({
            'status': 'error',
            'error': 'Bad Request',
            'message': 'The request could not be understood by the server',
            'status_code': 400
        }), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        """Handle 401 Unauthorized errors"""
        app.logger.warning(f"Unauthorized access attempt from {request.remote_addr}: {request.url}")
        return jsonify({
            'status': 'error',
            'error': 'Unauthorized',
            'message': 'Authentication required',
            'status_code': 401
        }), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 Forbidden errors"""
        app.logger.warning(f"Forbidden access attempt from {request.remote_addr}: {request.url}")
        return _forbidden_response()

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 Not Found errors"""
        app.logger.info(f"404 Not Found: {request.url} from {request.remote_addr}")
        if wants_json():
            return jsonify({
                'status': 'error',
                'error': 'Not Found',
                'message': 'The requested resource was not found',
                'status_code': 404
            }), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 Method Not Allowed errors"""
        app.logger.warning(f"Method not allowed: {request.method} {request.url} from {request.remote_addr}")
        return jsonify({
            'status': 'error',
            'error': 'Method Not Allowed',
            'message': f'The {request.method} method is not allowed for this endpoint',
            'status_code': 405
        }), 405

    @app.errorhandler(429)
    def rate_limited_error(error):
        """Handle rate limit rejections from Flask-Limiter"""
        app.logger.warning(f"Rate limit exceeded: {request.method} {request.path} from {request.remote_addr}")
        return jsonify({
            'status': 'error',
            'error': 'Too Many Requests',
            'message': 'Too many requests. Please try again later.',
            'status_code': 429
        }), 429

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error"""
        error_id = new_error_id()
        app.logger.error(f"Internal Server Error [{error_id}]: {str(error)}")
        app.logger.error(f"Request details [{error_id}]: {request.method} {request.url}")
        request_data = sanitize_request_data(request.get_data(as_text=True)[:1000])
        app.logger.error(f"Request data [{error_id}]: {request_data}")

        return jsonify({
            'status': 'error',
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'error_id': error_id,
            'status_code': 500
        }), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle any unexpected errors"""
        from werkzeug.exceptions import HTTPException

        if isinstance(error, HTTPException):
            return error

        error_id = new_error_id()
        app.logger.critical(f"Unexpected error [{error_id}]: {str(error)}")
        app.logger.critical(f"Traceback [{error_id}]: {traceback.format_exc()}")

        request_data = sanitize_request_data(request.get_data(as_text=True)[:1000])
        app.logger.critical(f"Request data [{error_id}]: {request_data}")

        return jsonify({
            'status': 'error',
            'error': 'Unexpected Error',
            'message': 'An unexpected error occurred',
            'error_id': error_id,
            'status_code': 500
        }), 500
