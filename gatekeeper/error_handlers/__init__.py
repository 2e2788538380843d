"""
Unified Error Handling System

Exception hierarchy, the @handle_errors decorator for JSON endpoints and
the global Flask error handlers.

Usage:
    from gatekeeper.error_handlers import handle_errors, ValidationException

    @bp.route('/endpoint', methods=['POST'])
    @handle_errors
    def my_endpoint():
        if not valid:
            raise ValidationException('Invalid data')
        return jsonify({'status': 'success'})
"""
from .exceptions import (
    AppException,
    ValidationException,
    AuthorizationException,
    RealmLockedException,
    ConfigurationException,
    ExternalAPIException
)
from .decorators import handle_errors, with_db_transaction
from .logging import setup_logging, register_error_handlers


__all__ = [
    # Exceptions
    'AppException',
    'ValidationException',
    'AuthorizationException',
    'RealmLockedException',
    'ConfigurationException',
    'ExternalAPIException',
    # Decorators
    'handle_errors',
    'with_db_transaction',
    # App setup
    'setup_logging',
    'register_error_handlers',
]
