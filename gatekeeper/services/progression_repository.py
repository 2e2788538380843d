"""
Progression persistence.

ProgressionRepository is the storage interface used by the progression
tracker. Two implementations:
    - InMemoryProgressionRepository: dict guarded by a lock (tests, demos)
    - SQLProgressionRepository: Progression/RealmSolve tables via
      Flask-SQLAlchemy (production)

advance() is a compare-and-swap: it moves a user from `expected_order` to
the next realm only if the stored order still equals `expected_order`,
so two concurrent submissions cannot both be accepted.
"""
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
import logging
import threading

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from gatekeeper.error_handlers.decorators import with_db_transaction
from gatekeeper.realms import ENTRY_ORDER, FINAL_ORDER, Realm, get_realm_by_order, realms_sorted


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProgressionState:
    """
    A user's position in the realm sequence.

    `current_order` is the order of the realm being attempted: every realm
    with a greater order is solved, every realm with a smaller order is
    locked. It drops to 0 once Asgard (order 1) is solved.
    """
    user_id: str
    current_order: int = ENTRY_ORDER
    solved: List[Tuple[str, datetime]] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.current_order < FINAL_ORDER

    @property
    def current_realm(self) -> Optional[Realm]:
        return get_realm_by_order(self.current_order)

    @property
    def unlocked_realms(self) -> List[str]:
        """Unlocked realm names in unlock order (entry realm first)."""
        return [realm.name for realm in realms_sorted() if realm.order >= self.current_order]

    @property
    def solved_realms(self) -> List[str]:
        return [realm for realm, _ in self.solved]

    def is_unlocked(self, realm: Realm) -> bool:
        return realm.order >= self.current_order

    def is_solved(self, realm: Realm) -> bool:
        return realm.order > self.current_order

    def to_dict(self) -> Dict:
        current = self.current_realm
        return {
            'userId': self.user_id,
            'currentRealm': current.name if current else None,
            'unlockedRealms': self.unlocked_realms,
            'solvedRealms': [
                {'realm': realm, 'solvedAt': solved_at.isoformat()}
                for realm, solved_at in self.solved
            ],
            'completed': self.completed,
            'lastUpdated': self.updated_at.isoformat() if self.updated_at else None,
        }


class ProgressionRepository(ABC):
    """Storage interface for progression state."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[ProgressionState]:
        """Stored state, or None if the user has never been initialized."""

    @abstractmethod
    def get_or_create(self, user_id: str) -> ProgressionState:
        """Stored state, creating the initial one (entry realm unlocked) if missing."""

    @abstractmethod
    def advance(self, user_id: str, expected_order: int) -> bool:
        """
        Mark realm `expected_order` solved and unlock the next one.

        Returns:
            bool: False if the stored order no longer equals `expected_order`
        """

    @abstractmethod
    def reset(self, user_id: str) -> None:
        """Drop all progression for a user."""


class InMemoryProgressionRepository(ProgressionRepository):
    """Process-local progression storage."""

    def __init__(self):
        self._states: Dict[str, ProgressionState] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[ProgressionState]:
        with self._lock:
            state = self._states.get(user_id)
            return deepcopy(state) if state else None

    def get_or_create(self, user_id: str) -> ProgressionState:
        with self._lock:
            state = self._states.get(user_id)
            if state is None:
                state = ProgressionState(user_id=user_id, updated_at=_utcnow())
                self._states[user_id] = state
                logger.info(f"Initialized progression for user {user_id}")
            return deepcopy(state)

    def advance(self, user_id: str, expected_order: int) -> bool:
        with self._lock:
            state = self._states.get(user_id)
            if state is None or state.current_order != expected_order or state.completed:
                return False

            realm = get_realm_by_order(expected_order)
            now = _utcnow()
            state.solved.append((realm.name, now))
            state.current_order = expected_order - 1
            state.updated_at = now
            return True

    def reset(self, user_id: str) -> None:
        with self._lock:
            self._states.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._states.clear()


class SQLProgressionRepository(ProgressionRepository):
    """
    Progression stored in the `progressions` and `realm_solves` tables.

    Requires an application context. Each advance() runs in one
    transaction built around a conditional UPDATE, so the database does
    the compare-and-swap.
    """

    def __init__(self, db, progression_model, solve_model):
        self.db = db
        self.Progression = progression_model
        self.RealmSolve = solve_model

    def _to_state(self, row) -> ProgressionState:
        return ProgressionState(
            user_id=row.user_id,
            current_order=row.current_order,
            solved=[(solve.realm, solve.solved_at) for solve in row.solves],
            updated_at=row.updated_at,
        )

    def get(self, user_id: str) -> Optional[ProgressionState]:
        row = self.db.session.get(self.Progression, user_id)
        return self._to_state(row) if row else None

    def get_or_create(self, user_id: str) -> ProgressionState:
        row = self.db.session.get(self.Progression, user_id)
        if row is not None:
            return self._to_state(row)

        row = self.Progression(user_id=user_id, current_order=ENTRY_ORDER)
        self.db.session.add(row)
        try:
            self.db.session.commit()
            logger.info(f"Initialized progression for user {user_id}")
        except IntegrityError:
            # Created concurrently by another request
            self.db.session.rollback()
            row = self.db.session.get(self.Progression, user_id)

        return self._to_state(row)

    def advance(self, user_id: str, expected_order: int) -> bool:
        if expected_order < FINAL_ORDER:
            return False

        realm = get_realm_by_order(expected_order)
        now = _utcnow()
        values = {'current_order': expected_order - 1, 'updated_at': now}
        if expected_order == FINAL_ORDER:
            values['completed_at'] = now

        try:
            result = self.db.session.execute(
                update(self.Progression)
                .where(
                    self.Progression.user_id == user_id,
                    self.Progression.current_order == expected_order
                )
                .values(**values)
            )
            if result.rowcount != 1:
                self.db.session.rollback()
                return False

            self.db.session.add(self.RealmSolve(user_id=user_id, realm=realm.name, solved_at=now))
            self.db.session.commit()
            return True
        except IntegrityError:
            self.db.session.rollback()
            return False
        except SQLAlchemyError:
            self.db.session.rollback()
            raise

    @with_db_transaction
    def reset(self, user_id: str) -> None:
        self.RealmSolve.query.filter_by(user_id=user_id).delete()
        self.Progression.query.filter_by(user_id=user_id).delete()
        logger.info(f"Reset progression for user {user_id}")
