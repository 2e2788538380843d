"""
Routes package for the gatekeeper
Centralizes all route blueprints
"""
from .auth import (
    auth_bp,
    is_authenticated,
    get_current_session,
    require_authentication
)
from .realms import realms_bp
from .health import health_bp

__all__ = [
    'auth_bp',
    'realms_bp',
    'health_bp',
    'is_authenticated',
    'get_current_session',
    'require_authentication'
]
