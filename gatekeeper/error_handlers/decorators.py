"""
Error handling decorators

Provides decorators for consistent error handling across endpoints.
"""
from functools import wraps
from flask import jsonify, current_app
from .exceptions import AppException
from .logging import new_error_id


def handle_errors(f):
    """
    Universal error handler decorator for JSON endpoints

    Provides:
    - Consistent JSON error responses
    - Automatic logging with error IDs
    - Exception type hierarchy support

    Usage:
        @bp.route('/endpoint', methods=['POST'])
        @handle_errors
        def my_endpoint():
            if not valid:
                raise ValidationException('Invalid input')
            return jsonify({'status': 'success'})
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)

        except AppException as e:
            current_app.logger.warning(
                f"{e.error_type} in {f.__name__}: {e.message}",
                extra={'details': e.details} if e.details else {}
            )
            return jsonify(e.to_dict()), e.status_code

        except Exception as e:
            error_id = new_error_id()

            current_app.logger.error(
                f"Unexpected error [{error_id}] in {f.__name__}: {str(e)}",
                exc_info=True
            )

            return jsonify({
                'status': 'error',
                'error': 'InternalError',
                'message': 'An unexpected error occurred',
                'error_id': error_id,
                'status_code': 500
            }), 500

    return decorated


def with_db_transaction(f):
    """
    Wrap a function in a database transaction

    Commits on success, rolls back and re-raises on error.

    Usage:
        @with_db_transaction
        def create_account(username, password):
            db.session.add(User(...))
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        db = current_app.extensions['sqlalchemy']

        try:
            result = f(*args, **kwargs)
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    return decorated
