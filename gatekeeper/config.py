"""
Configuration management for the Yggdrasil gatekeeper
Handles environment-based settings for sessions, progression and security

Settings are read from the environment (or a .env file) with
python-decouple; create_app validates production secrets before startup.
"""
import secrets
from decouple import config, UndefinedValueError
from typing import Optional

from gatekeeper.error_handlers.exceptions import ConfigurationException


class Config:
    """Base configuration class"""
    # Flask settings
    # Development: random key on startup (non-persistent OK for dev)
    SECRET_KEY = config('SECRET_KEY', default=secrets.token_hex(32))
    SQLALCHEMY_DATABASE_URI = config('DATABASE_URL', default='sqlite:///gatekeeper.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging settings
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FILE = config('LOG_FILE', default='logs/gatekeeper.log')

    # Session store
    SESSION_MAX_SESSIONS = config('SESSION_MAX_SESSIONS', default=1000, cast=int)
    SESSION_TTL_SECONDS = config('SESSION_TTL_SECONDS', default=3600, cast=float)  # 1 hour
    SESSION_CLEANUP_INTERVAL_SECONDS = config('SESSION_CLEANUP_INTERVAL_SECONDS', default=300, cast=float)  # 5 minutes
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=False, cast=bool)

    # Progression
    PROGRESSION_BACKEND = config('PROGRESSION_BACKEND', default='sql')  # 'sql' or 'memory'
    FLAG_MASTER_SECRET = config('FLAG_MASTER_SECRET', default='')

    # Default player account seeded on startup
    DEFAULT_USERNAME = config('DEFAULT_USERNAME', default='weaver')
    DEFAULT_USER_PASSWORD = config('DEFAULT_USER_PASSWORD', default='yggdrasil123')
    AUTH_FAILURE_DELAY = (0.05, 0.15)

    # Realm proxy
    REALM_PROXY_ENABLED = config('REALM_PROXY_ENABLED', default=False, cast=bool)
    REALM_PROXY_TIMEOUT = config('REALM_PROXY_TIMEOUT', default=10, cast=int)

    # Rate limiting
    RATELIMIT_ENABLED = config('RATELIMIT_ENABLED', default=True, cast=bool)
    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='200 per hour')
    LOGIN_RATE_LIMIT = config('LOGIN_RATE_LIMIT', default='5 per minute')
    SUBMIT_FLAG_RATE_LIMIT = config('SUBMIT_FLAG_RATE_LIMIT', default='10 per minute')

    # Security headers applied to every response
    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Content-Security-Policy': (
            "default-src 'self'; script-src 'self'; "
            "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
            "img-src 'self' data:; font-src 'self' https://fonts.gstatic.com; "
            "connect-src 'self'; frame-ancestors 'none'; object-src 'none'; base-uri 'none'"
        ),
    }

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration - can be called explicitly or on-demand

        Raises:
            ConfigurationException: If required configuration is missing
        """
        pass  # Base config has no required validation


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOG_FILE = ''
    LOG_LEVEL = 'WARNING'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    AUTH_FAILURE_DELAY = (0, 0)
    FLAG_MASTER_SECRET = ''
    REALM_PROXY_ENABLED = False
    # Long sweep interval; store tests build their own instances
    SESSION_CLEANUP_INTERVAL_SECONDS = 3600


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SECRET_KEY = config('SECRET_KEY', default='change-this-to-a-random-secret-key-in-production')

    # Session cookie security
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=True, cast=bool)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # CSRF Protection
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = config('WTF_CSRF_TIME_LIMIT', default=3600, cast=int)

    SECURITY_HEADERS = dict(
        Config.SECURITY_HEADERS,
        **{'Strict-Transport-Security': 'max-age=31536000; includeSubDomains'}
    )

    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')

    @classmethod
    def validate(cls) -> None:
        """
        Production mode: validate secrets

        Raises:
            ConfigurationException: If a secret is missing or too short
        """
        try:
            secret_key = config('SECRET_KEY')
        except UndefinedValueError:
            raise ConfigurationException(
                "SECRET_KEY environment variable must be set in production. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if len(secret_key) < 32:
            raise ConfigurationException(
                f"SECRET_KEY must be at least 32 characters in production (current: {len(secret_key)})."
            )

        flag_secret = config('FLAG_MASTER_SECRET', default='')
        if flag_secret and len(flag_secret) < 32:
            raise ConfigurationException('FLAG_MASTER_SECRET must be at least 32 characters when set.')


# Configuration mapping
config_mapping = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None, validate: bool = False) -> type:
    """
    Get configuration class based on environment.

    Args:
        config_name: Environment name ('development', 'testing', 'production')
        validate: Whether to validate configuration immediately (default: False)

    Returns:
        Config class for the specified environment

    Example:
        >>> config = get_config('production', validate=True)
    """
    if config_name is None:
        config_name = config('FLASK_ENV', default='development')

    config_class = config_mapping.get(config_name, DevelopmentConfig)

    if validate:
        config_class.validate()

    return config_class
