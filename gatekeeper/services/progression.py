"""
Progression tracker - realm gating and flag submission.

Realms unlock strictly in order, Niflheim (10) first and Asgard (1) last.
A realm is unlocked iff every harder realm has been solved. The only
transition is "solve the current realm", triggered by submitting its
correct flag; nothing can be skipped or undone.

Usage:
    tracker = ProgressionTracker(InMemoryProgressionRepository(), FlagService())
    tracker.is_unlocked('user_1', 'helheim')          # False
    result = tracker.submit_flag('user_1', niflheim_flag)
    result.unlocked                                   # 'helheim'
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from gatekeeper.realms import ENTRY_ORDER, FINAL_ORDER, get_realm, get_next_realm
from gatekeeper.services.flag_service import FlagService, parse_flag
from gatekeeper.services.progression_repository import ProgressionRepository, ProgressionState


logger = logging.getLogger(__name__)

STATUS_SUCCESS = 'success'
STATUS_ERROR = 'error'
STATUS_INVALID = 'invalid'


@dataclass
class SubmissionResult:
    """
    Outcome of a flag submission.

    Attributes:
        accepted: True only when the flag advanced the user's progression
        status: 'success', 'error' (rejected by progression rules) or
            'invalid' (malformed or wrong flag)
        status_code: HTTP status the router answers with
        realm: Realm the flag was accepted for
        unlocked: Realm unlocked by this submission
        completed: True once Asgard is solved
    """
    accepted: bool
    status: str
    message: str
    status_code: int
    realm: Optional[str] = None
    unlocked: Optional[str] = None
    completed: bool = False

    @classmethod
    def rejected(cls, status: str, message: str, status_code: int = 400) -> 'SubmissionResult':
        return cls(accepted=False, status=status, message=message, status_code=status_code)

    def to_dict(self) -> Dict[str, Any]:
        result = {'status': self.status, 'message': self.message}
        if self.realm:
            result['realm'] = self.realm
        if self.unlocked:
            result['unlocked'] = self.unlocked
        if self.accepted:
            result['completed'] = self.completed
        return result


class ProgressionTracker:
    """Authorizes realm access and advances progression on verified flags."""

    def __init__(self, repository: ProgressionRepository, flag_service: FlagService):
        self.repository = repository
        self.flag_service = flag_service

    def get_state(self, user_id: str) -> ProgressionState:
        """Current state; initializes the entry realm on first use."""
        return self.repository.get_or_create(user_id)

    def _current_order(self, user_id: str) -> int:
        state = self.repository.get(user_id)
        return state.current_order if state else ENTRY_ORDER

    def is_unlocked(self, user_id: str, realm_name: str) -> bool:
        """
        True iff every realm harder than `realm_name` has been solved.

        Unknown realm names are never unlocked. The entry realm is always
        unlocked, even before the user's progression exists.
        """
        realm = get_realm(realm_name)
        if realm is None or not user_id:
            return False
        if realm.order == ENTRY_ORDER:
            return True
        return realm.order >= self._current_order(user_id)

    def unlocked_realms(self, user_id: str) -> List[str]:
        state = self.repository.get(user_id)
        if state is None:
            state = ProgressionState(user_id=user_id)
        return state.unlocked_realms

    def submit_flag(self, user_id: str, flag) -> SubmissionResult:
        """
        Verify a flag against the user's current realm and advance on success.

        Rejections never change state: malformed flags, unknown realms,
        flags for already-solved realms, out-of-order flags, wrong flags,
        and submissions that lose a race to a concurrent one.
        """
        if not user_id or not isinstance(user_id, str):
            return SubmissionResult.rejected(STATUS_ERROR, 'Invalid user')

        parsed = parse_flag(flag)
        if parsed is None:
            return SubmissionResult.rejected(STATUS_INVALID, 'Invalid flag format')

        realm = get_realm(parsed.realm)
        if realm is None:
            return SubmissionResult.rejected(STATUS_INVALID, 'Flag not recognised')

        state = self.repository.get_or_create(user_id)

        if state.completed:
            return SubmissionResult.rejected(STATUS_ERROR, 'All realms already completed')

        if state.is_solved(realm):
            return SubmissionResult.rejected(STATUS_ERROR, 'Realm already completed')

        if realm.order != state.current_order:
            logger.warning(
                f"Out-of-order flag submission: user={user_id} realm={realm.name} "
                f"current={state.current_realm.name}"
            )
            return SubmissionResult.rejected(
                STATUS_ERROR, 'Previous realm must be completed first', status_code=403
            )

        if not self.flag_service.verify(flag, realm.flag_id, user_id):
            logger.info(f"Incorrect flag submitted: user={user_id} realm={realm.name}")
            return SubmissionResult.rejected(STATUS_INVALID, 'Flag not recognised')

        if not self.repository.advance(user_id, realm.order):
            logger.warning(f"Concurrent flag submission rejected: user={user_id} realm={realm.name}")
            return SubmissionResult.rejected(
                STATUS_ERROR, 'Progression changed, please retry', status_code=409
            )

        next_realm = get_next_realm(realm)
        completed = realm.order == FINAL_ORDER
        if completed:
            logger.info(f"User {user_id} completed the journey")
        else:
            logger.info(f"Flag accepted: user={user_id} realm={realm.name} unlocked={next_realm.name}")

        return SubmissionResult(
            accepted=True,
            status=STATUS_SUCCESS,
            message='Journey complete' if completed else 'Flag accepted',
            status_code=200,
            realm=realm.name,
            unlocked=next_realm.name if next_realm else None,
            completed=completed,
        )
