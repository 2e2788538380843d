"""
Gatekeeper metrics

In-process counters rendered in the Prometheus text format by
/health/metrics. Counts are per worker process.
"""
import threading
from collections import Counter
from typing import Dict, Optional, Tuple

from gatekeeper.realms import get_realm


UNKNOWN_REALM = 'unknown'


def _realm_label(realm_name: Optional[str]) -> str:
    # Arbitrary names from the URL must not create new series
    realm = get_realm(realm_name) if realm_name else None
    return realm.name if realm else UNKNOWN_REALM


class GatekeeperMetrics:
    """
    Thread-safe counters for flag submissions and realm access.

    Attributes:
        flag_submissions: (result, realm) -> count
        realm_access: (realm, status) -> count, status is 'granted' or 'denied'
        forbidden_access: realm -> count of locked-realm 403s
    """

    def __init__(self, app=None):
        self.lock = threading.Lock()
        self.flag_submissions: Counter = Counter()
        self.realm_access: Counter = Counter()
        self.forbidden_access: Counter = Counter()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['metrics'] = self

    def record_submission(self, result: str, realm_name: Optional[str] = None):
        with self.lock:
            self.flag_submissions[(result, _realm_label(realm_name))] += 1

    def record_realm_access(self, realm_name: Optional[str], granted: bool):
        label = _realm_label(realm_name)
        with self.lock:
            self.realm_access[(label, 'granted' if granted else 'denied')] += 1
            if not granted:
                self.forbidden_access[label] += 1

    def snapshot(self) -> Dict[str, Dict]:
        """Copy of all counters"""
        with self.lock:
            return {
                'flag_submissions': dict(self.flag_submissions),
                'realm_access': dict(self.realm_access),
                'forbidden_access': dict(self.forbidden_access),
            }

    def render(self, active_sessions: int) -> str:
        """Prometheus text exposition of the counters plus the active session gauge"""
        snapshot = self.snapshot()
        lines = [
            '# HELP gatekeeper_active_sessions Number of live sessions in the store',
            '# TYPE gatekeeper_active_sessions gauge',
            f'gatekeeper_active_sessions {active_sessions}',
        ]

        lines += _counter_lines(
            'gatekeeper_flag_submissions_total',
            'Flag submissions by result and realm',
            snapshot['flag_submissions'],
            ('result', 'realm')
        )
        lines += _counter_lines(
            'gatekeeper_realm_access_total',
            'Realm access attempts by realm and status',
            snapshot['realm_access'],
            ('realm', 'status')
        )
        lines += _counter_lines(
            'gatekeeper_forbidden_access_total',
            'Locked or unknown realm requests answered with 403',
            {(realm,): count for realm, count in snapshot['forbidden_access'].items()},
            ('realm',)
        )
        return '\n'.join(lines) + '\n'


def _counter_lines(name: str, help_text: str, values: Dict[Tuple, int], label_names: Tuple[str, ...]):
    lines = [f'# HELP {name} {help_text}', f'# TYPE {name} counter']
    for labels, count in sorted(values.items()):
        rendered = ','.join(f'{key}="{value}"' for key, value in zip(label_names, labels))
        lines.append(f'{name}{{{rendered}}} {count}')
    return lines
