"""
In-memory session store.

Holds one entry per authenticated browser session with TTL expiry and a
hard cap on the number of live sessions.

Features:
    - Idle TTL measured from last_accessed (default 1 hour)
    - Capacity bound: inserting a new key at capacity evicts the session
      with the oldest last_accessed
    - Lazy purge of expired entries on read
    - Background sweep on a fixed interval (APScheduler, daemon thread)
    - Thread-safe storage shared by request threads and the sweep

Session Lifecycle:
    1. User logs in -> session set, last_accessed stamped
    2. Authenticated requests -> touch() refreshes last_accessed
    3. Idle longer than the TTL -> purged on next read or next sweep
    4. Logout -> destroy()

Reads do not refresh last_accessed; only set() and touch() do.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import threading
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gatekeeper.error_handlers.exceptions import ConfigurationException


logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000
DEFAULT_TTL_SECONDS = 3600
DEFAULT_CLEANUP_INTERVAL_SECONDS = 300


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """
    One authenticated browser session.

    Attributes:
        user_id (str): Id of the authenticated user
        username (str): Username shown in the UI
        created_at (datetime): When the session was created
        last_accessed (datetime): Last write or touch
    """
    user_id: str
    username: str
    created_at: datetime
    last_accessed: datetime

    @classmethod
    def new(cls, user_id: str, username: str) -> 'Session':
        now = _now()
        return cls(user_id=user_id, username=username, created_at=now, last_accessed=now)

    def idle_for(self, now: Optional[datetime] = None) -> timedelta:
        return (now or _now()) - self.last_accessed

    def to_dict(self) -> Dict[str, str]:
        return {
            'user_id': self.user_id,
            'username': self.username,
            'created_at': self.created_at.isoformat(),
            'last_accessed': self.last_accessed.isoformat(),
        }


class MemorySessionStore:
    """
    Bounded, TTL-expiring session storage.

    Attributes:
        sessions (Dict[str, Session]): Live entries by session id
        max_sessions (int): Capacity before oldest-eviction kicks in
        ttl (timedelta): Idle time after which a session is expired
        cleanup_interval (float): Seconds between background sweeps
        lock (threading.Lock): Guards `sessions`
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        cleanup_interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        start_cleanup: bool = True
    ):
        """
        Initialize the store.

        Args:
            max_sessions: Maximum number of stored sessions
            ttl_seconds: Idle lifetime of a session in seconds
            cleanup_interval_seconds: Period of the background sweep
            start_cleanup: Start the background sweep immediately

        Raises:
            ConfigurationException: If any parameter is not positive
        """
        if not isinstance(max_sessions, int) or max_sessions < 1:
            raise ConfigurationException(f'max_sessions must be a positive integer, got {max_sessions!r}')
        if ttl_seconds is None or ttl_seconds <= 0:
            raise ConfigurationException(f'ttl_seconds must be positive, got {ttl_seconds!r}')
        if cleanup_interval_seconds is None or cleanup_interval_seconds <= 0:
            raise ConfigurationException(
                f'cleanup_interval_seconds must be positive, got {cleanup_interval_seconds!r}'
            )

        self.sessions: Dict[str, Session] = {}
        self.max_sessions = max_sessions
        self.ttl = timedelta(seconds=ttl_seconds)
        self.cleanup_interval = cleanup_interval_seconds
        self.lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

        if start_cleanup:
            self.start()

    def get(self, session_id: str) -> Optional[Session]:
        """
        Get a session if it exists and has not expired.

        An expired entry is deleted as a side effect.

        Args:
            session_id: Session key

        Returns:
            Optional[Session]: A copy of the stored session, or None
        """
        if not session_id:
            return None

        with self.lock:
            session = self.sessions.get(session_id)
            if session is None:
                return None

            if session.idle_for() > self.ttl:
                del self.sessions[session_id]
                logger.debug(f"Session {session_id[:8]}... expired on read")
                return None

            return replace(session)

    def set(self, session_id: str, data: Session) -> None:
        """
        Create or overwrite a session, stamping last_accessed with now.

        A new key at capacity evicts the globally oldest session first.
        Overwriting an existing key never evicts.

        Args:
            session_id: Session key
            data: Session payload; stored as a copy
        """
        with self.lock:
            if session_id not in self.sessions and len(self.sessions) >= self.max_sessions:
                self._evict_oldest()

            self.sessions[session_id] = replace(data, last_accessed=_now())

    def destroy(self, session_id: str) -> None:
        """Remove a session. Missing keys are ignored."""
        with self.lock:
            self.sessions.pop(session_id, None)

    def touch(self, session_id: str) -> None:
        """Refresh last_accessed if the session exists."""
        with self.lock:
            session = self.sessions.get(session_id)
            if session is not None:
                session.last_accessed = _now()

    def count(self) -> int:
        """Number of stored sessions, including stale ones not yet purged."""
        with self.lock:
            return len(self.sessions)

    def clear(self) -> None:
        with self.lock:
            self.sessions.clear()

    def cleanup_expired_sessions(self) -> int:
        """
        Remove all expired sessions.

        Runs on the background sweep; safe to call directly.

        Returns:
            int: Number of sessions cleaned up
        """
        now = _now()
        with self.lock:
            expired = [
                session_id for session_id, session in self.sessions.items()
                if session.idle_for(now) > self.ttl
            ]

            for session_id in expired:
                del self.sessions[session_id]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")

        return len(expired)

    def _evict_oldest(self) -> None:
        # Caller holds the lock
        if not self.sessions:
            return

        oldest_id = min(self.sessions, key=lambda sid: self.sessions[sid].last_accessed)
        del self.sessions[oldest_id]
        logger.info(f"Session store at capacity ({self.max_sessions}); evicted oldest session {oldest_id[:8]}...")

    # Background sweep

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Start the background sweep. Calling it twice is a no-op."""
        if self._scheduler is not None:
            return

        # Daemon threads: housekeeping never keeps the process alive
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            func=self.cleanup_expired_sessions,
            trigger=IntervalTrigger(seconds=self.cleanup_interval),
            id='session_store_cleanup',
            name='Cleanup expired gatekeeper sessions',
            replace_existing=True,
            coalesce=True,
            max_instances=1
        )
        scheduler.start()
        self._scheduler = scheduler

    def stop(self) -> None:
        """Stop the background sweep. Stored sessions are kept."""
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None

    def init_app(self, app):
        """
        Register the store on a Flask app.

        Available afterwards as app.extensions['session_store'].
        """
        app.extensions['session_store'] = self
