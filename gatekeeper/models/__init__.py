"""
Database models for the gatekeeper
Centralizes all SQLAlchemy model creation using factory pattern
"""
from .user import create_user_model
from .progression import create_progression_models


_models = None


def init_models(db):
    """
    Initialize all models with the database instance

    Models are declared once per process; later calls return the same
    classes so several app instances can share one metadata.

    Args:
        db: SQLAlchemy database instance

    Returns:
        dict: Dictionary containing all model classes
    """
    global _models
    if _models is None:
        User = create_user_model(db)
        Progression, RealmSolve = create_progression_models(db)
        _models = {
            'User': User,
            'Progression': Progression,
            'RealmSolve': RealmSolve,
        }
    return _models


__all__ = [
    'init_models',
    'create_user_model',
    'create_progression_models',
    # Model registry exports
    'model_registry',
    'get_models'
]

# Import registry for convenience
from .registry import model_registry, get_models
