"""
Custom exception hierarchy for type-safe error handling

Maps gatekeeper failures to HTTP status codes so every endpoint answers
with the same error shape.

Usage:
    from gatekeeper.error_handlers.exceptions import ValidationException

    def submit(data):
        if not data.get('flag'):
            raise ValidationException('flag is required')

Exception Hierarchy:
    AppException (base)
    ├── ValidationException (400)
    ├── AuthorizationException (403)
    │   └── RealmLockedException (403)
    ├── ConfigurationException (500)
    └── ExternalAPIException (502)
"""
from typing import Dict, Any, Optional


class AppException(Exception):
    """
    Base exception for all application errors

    Attributes:
        status_code: HTTP status code for the error
        error_type: String identifier for the error type
        message: Human-readable error message
        details: Additional context about the error
    """
    status_code = 500
    error_type = 'ApplicationError'

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to JSON-serializable dictionary

        Returns:
            Dictionary suitable for JSON response
        """
        result = {
            'status': 'error',
            'error': self.error_type,
            'message': self.message,
            'status_code': self.status_code
        }

        if self.details:
            result.update(self.details)

        return result

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}('{self.message}', status_code={self.status_code})>"


class ValidationException(AppException):
    """
    Validation errors (HTTP 400)

    Example:
        >>> if not request.json.get('flag'):
        ...     raise ValidationException('flag is required')
    """
    status_code = 400
    error_type = 'ValidationError'


class AuthorizationException(AppException):
    """
    Authorization errors (HTTP 403)

    Raised when the user is authenticated but lacks permission.
    """
    status_code = 403
    error_type = 'AuthorizationError'


class RealmLockedException(AuthorizationException):
    """
    Direct navigation to a realm the user has not unlocked.

    The realm name is kept for logging only and never goes into
    to_dict(), so the response cannot reveal which realm was requested.
    """
    error_type = 'Forbidden'

    def __init__(self, realm_name: str, user_id: Optional[str] = None):
        super().__init__('Access denied')
        self.realm_name = realm_name
        self.user_id = user_id


class ConfigurationException(AppException):
    """
    Configuration errors (HTTP 500)

    Raised when a component is constructed with invalid settings.

    Example:
        >>> if max_sessions < 1:
        ...     raise ConfigurationException('max_sessions must be positive')
    """
    status_code = 500
    error_type = 'ConfigurationError'


class ExternalAPIException(AppException):
    """
    Upstream realm service errors (HTTP 502)

    Raised when proxying to a realm service fails.
    """
    status_code = 502
    error_type = 'BadGateway'
