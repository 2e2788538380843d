"""
Gatekeeper services: session storage, progression, authentication and metrics
"""
from .session_store import MemorySessionStore, Session
from .flag_service import FlagService, parse_flag
from .progression_repository import (
    ProgressionRepository,
    ProgressionState,
    InMemoryProgressionRepository,
    SQLProgressionRepository
)
from .progression import ProgressionTracker, SubmissionResult
from .auth_service import AuthService
from .realm_proxy import RealmProxy
from .metrics import GatekeeperMetrics

__all__ = [
    'MemorySessionStore',
    'Session',
    'FlagService',
    'parse_flag',
    'ProgressionRepository',
    'ProgressionState',
    'InMemoryProgressionRepository',
    'SQLProgressionRepository',
    'ProgressionTracker',
    'SubmissionResult',
    'AuthService',
    'RealmProxy',
    'GatekeeperMetrics',
]
