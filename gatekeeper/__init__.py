"""
Flask application factory.

This module implements the application factory pattern for creating
gatekeeper application instances with different configurations.
"""

from flask import Flask, request
from flask_wtf.csrf import generate_csrf
import atexit
import os

from .extensions import db, migrate, csrf, limiter
from .config import get_config


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name (development, testing, production)
                    If None, determined from environment

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Apply ProxyFix for correct IP and scheme handling behind the reverse proxy
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # Load configuration
    config_class = get_config(config_name, validate=True)
    app.config.from_object(config_class)

    # Relative sqlite paths live in the instance directory
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    if app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite:///gatekeeper.db':
        os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{os.path.join(basedir, "instance", "gatekeeper.db")}'

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Initialize rate limiter; RATELIMIT_* settings are read from app.config
    limiter.init_app(app)

    # Configure logging and error handling
    from gatekeeper.error_handlers import setup_logging, register_error_handlers
    setup_logging(app)
    register_error_handlers(app)

    # Initialize database models
    from gatekeeper.models import init_models, model_registry
    models = init_models(db)

    model_registry.init_app(app)
    model_registry.register(models)

    # Core services
    setup_services(app, models)

    # Register blueprints
    register_blueprints(app)

    # Setup background tasks
    setup_background_tasks(app)

    # Setup request/response handlers
    setup_request_handlers(app)

    return app


def setup_services(app, models):
    """Build the session store, progression tracker, auth service and metrics."""
    from gatekeeper.error_handlers import ConfigurationException
    from gatekeeper.services import (
        MemorySessionStore,
        FlagService,
        InMemoryProgressionRepository,
        SQLProgressionRepository,
        ProgressionTracker,
        AuthService,
        RealmProxy,
        GatekeeperMetrics
    )

    session_store = MemorySessionStore(
        max_sessions=app.config['SESSION_MAX_SESSIONS'],
        ttl_seconds=app.config['SESSION_TTL_SECONDS'],
        cleanup_interval_seconds=app.config['SESSION_CLEANUP_INTERVAL_SECONDS'],
        start_cleanup=False
    )
    session_store.init_app(app)
    GatekeeperMetrics(app)

    backend = app.config.get('PROGRESSION_BACKEND', 'sql').lower()
    if backend == 'memory':
        repository = InMemoryProgressionRepository()
    elif backend == 'sql':
        repository = SQLProgressionRepository(db, models['Progression'], models['RealmSolve'])
    else:
        raise ConfigurationException(f"Unknown PROGRESSION_BACKEND: {backend}")

    flag_service = FlagService(master_secret=app.config.get('FLAG_MASTER_SECRET') or None)
    app.extensions['progression'] = ProgressionTracker(repository, flag_service)
    app.extensions['auth_service'] = AuthService(
        db, models['User'], failure_delay=app.config.get('AUTH_FAILURE_DELAY', (0.05, 0.15))
    )

    if app.config.get('REALM_PROXY_ENABLED'):
        RealmProxy(app)

    app.logger.info(
        f"Gatekeeper services ready: progression={backend} flags={flag_service.mode} "
        f"max_sessions={session_store.max_sessions}"
    )


def register_blueprints(app):
    """Register all Flask blueprints."""
    from gatekeeper.routes import auth_bp, realms_bp, health_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(realms_bp)
    app.register_blueprint(health_bp)

    # Health probes are polled by the orchestrator
    limiter.exempt(health_bp)

    # Configure CSRF exemptions for specific routes (after blueprint registration)
    # Login cannot carry a token before a session exists
    if 'auth.login' in app.view_functions:
        csrf.exempt(app.view_functions['auth.login'])

    # Session heartbeat only updates last_accessed
    if 'auth.session_heartbeat' in app.view_functions:
        csrf.exempt(app.view_functions['auth.session_heartbeat'])

    if 'realms.proxy' in app.view_functions:
        csrf.exempt(app.view_functions['realms.proxy'])


def setup_background_tasks(app):
    """Start the session sweep and stop it when the process exits."""
    session_store = app.extensions['session_store']
    session_store.start()

    atexit.register(session_store.stop)


def setup_request_handlers(app):
    """Setup request and response handlers."""

    from gatekeeper.routes import get_current_session

    @app.context_processor
    def inject_session():
        """Make the current session available in templates"""
        return dict(current_session=get_current_session)

    @app.after_request
    def add_security_headers(response):
        for header, value in app.config.get('SECURITY_HEADERS', {}).items():
            response.headers.setdefault(header, value)
        response.headers.pop('X-Powered-By', None)
        return response

    @app.after_request
    def add_csrf_token_cookie(response):
        """
        Add CSRF token to cookie for AJAX requests.

        The flag submission form reads it and sends it back in the
        X-CSRFToken header.
        """
        if request.endpoint and not request.endpoint.startswith('static') \
                and app.config.get('WTF_CSRF_ENABLED', True):
            response.set_cookie(
                'csrf_token',
                generate_csrf(),
                secure=app.config.get('SESSION_COOKIE_SECURE', False),
                httponly=False,
                samesite='Lax'
            )
        return response


def init_db(app):
    """Create tables and seed the default player account."""
    with app.app_context():
        db.create_all()
        app.extensions['auth_service'].ensure_default_user(
            app.config.get('DEFAULT_USERNAME'),
            app.config.get('DEFAULT_USER_PASSWORD')
        )
