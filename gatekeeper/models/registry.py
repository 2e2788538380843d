"""
Model Registry - Centralized model access using Flask extension pattern

Usage:
    from gatekeeper.models.registry import get_models

    def my_view():
        User = get_models()['User']
        user = User.query.first()
"""
from flask import current_app
from typing import Dict, Any


class ModelRegistry:
    """
    Flask extension for centralized model management

    Models are created by factory functions bound to the app's db, so
    they are looked up here instead of imported directly.
    """

    def __init__(self, app=None):
        self.models: Dict[str, Any] = {}
        if app:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['models'] = self

    def register(self, models_dict: Dict[str, Any]):
        self.models = models_dict


# Global instance
model_registry = ModelRegistry()


def get_models() -> Dict[str, Any]:
    """
    Get all registered models from current app context

    Raises:
        RuntimeError: If the registry was not initialized on the app
    """
    if 'models' not in current_app.extensions:
        raise RuntimeError(
            "ModelRegistry not initialized. "
            "Ensure model_registry.init_app(app) is called during app setup."
        )

    return current_app.extensions['models'].models
