"""
Unit tests for the in-memory session store.

Tests cover:
- set/get round trip and last_accessed stamping
- Capacity bound and eviction of the globally oldest session
- TTL expiry on read and by the background sweep
- No-op semantics for missing keys
- Construction-time validation
"""
import threading
import time
from datetime import timedelta

import pytest

from gatekeeper.error_handlers import ConfigurationException
from gatekeeper.services.session_store import MemorySessionStore, Session


def _age(store, session_id, seconds):
    """Push a stored session's last_accessed into the past"""
    store.sessions[session_id].last_accessed -= timedelta(seconds=seconds)


class TestSetAndGet:
    """Tests for writing and reading sessions."""

    @pytest.mark.unit
    def test_get_after_set_preserves_identity(self, session_store):
        """Test that user_id and username survive a round trip."""
        session_store.set('abc', Session.new('user_1', 'weaver'))

        session = session_store.get('abc')
        assert session is not None
        assert session.user_id == 'user_1'
        assert session.username == 'weaver'

    @pytest.mark.unit
    def test_set_stamps_last_accessed_with_now(self, session_store):
        """Test that the stored last_accessed is refreshed, not copied verbatim."""
        data = Session.new('user_1', 'weaver')
        data.last_accessed -= timedelta(minutes=30)
        passed_in = data.last_accessed

        session_store.set('abc', data)

        stored = session_store.get('abc')
        assert stored.last_accessed > passed_in
        assert stored.last_accessed >= stored.created_at
        before_touch = stored.last_accessed

        session_store.touch('abc')

        touched = session_store.get('abc')
        assert touched.last_accessed >= touched.created_at
        assert touched.last_accessed >= before_touch

    @pytest.mark.unit
    def test_get_does_not_refresh_last_accessed(self, session_store):
        """Test that reads leave last_accessed untouched."""
        session_store.set('abc', Session.new('user_1', 'weaver'))
        first = session_store.get('abc').last_accessed
        time.sleep(0.01)

        assert session_store.get('abc').last_accessed == first

    @pytest.mark.unit
    def test_get_returns_copy(self, session_store):
        """Test that mutating a returned session does not change the store."""
        session_store.set('abc', Session.new('user_1', 'weaver'))

        session = session_store.get('abc')
        session.username = 'loki'

        assert session_store.get('abc').username == 'weaver'

    @pytest.mark.unit
    def test_get_missing_returns_none(self, session_store):
        assert session_store.get('missing') is None
        assert session_store.get('') is None

    @pytest.mark.unit
    def test_overwrite_keeps_single_entry(self, session_store):
        session_store.set('abc', Session.new('user_1', 'weaver'))
        session_store.set('abc', Session.new('user_1', 'weaver-renamed'))

        assert session_store.count() == 1
        assert session_store.get('abc').username == 'weaver-renamed'


class TestCapacity:
    """Tests for the max_sessions bound."""

    @pytest.mark.unit
    def test_inserting_past_capacity_keeps_max_sessions(self, session_store):
        """Test that more distinct keys than capacity leaves exactly max_sessions entries."""
        for i in range(10):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))

        assert session_store.count() == 3

    @pytest.mark.unit
    def test_evicts_globally_oldest_session(self, session_store):
        """Test that the entry with the smallest last_accessed is the one evicted."""
        for i in range(3):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))
        # s1 becomes the oldest although it was not inserted first
        _age(session_store, 's1', 120)
        _age(session_store, 's0', 10)

        session_store.set('s3', Session.new('user_3', 'player3'))

        assert set(session_store.sessions) == {'s0', 's2', 's3'}

    @pytest.mark.unit
    def test_eviction_considers_live_sessions(self, session_store):
        """Test that eviction happens even when no session is expired."""
        for i in range(4):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))
            time.sleep(0.005)

        assert session_store.get('s0') is None
        assert session_store.get('s3') is not None

    @pytest.mark.unit
    def test_updating_existing_key_at_capacity_does_not_evict(self, session_store):
        for i in range(3):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))

        session_store.set('s0', Session.new('user_0', 'player0'))

        assert session_store.count() == 3
        assert set(session_store.sessions) == {'s0', 's1', 's2'}

    @pytest.mark.unit
    def test_touch_protects_session_from_eviction(self, session_store):
        """Test that a touched session is no longer the oldest."""
        for i in range(3):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))
            time.sleep(0.005)

        session_store.touch('s0')
        session_store.set('s3', Session.new('user_3', 'player3'))

        assert session_store.get('s0') is not None
        assert session_store.get('s1') is None


class TestExpiry:
    """Tests for TTL expiry."""

    @pytest.mark.unit
    def test_expired_session_is_unreadable_and_purged(self, session_store):
        """Test that get() on an expired session returns None and deletes it."""
        session_store.set('abc', Session.new('user_1', 'weaver'))
        _age(session_store, 'abc', 61)

        assert session_store.count() == 1  # stale but not yet purged
        assert session_store.get('abc') is None
        assert session_store.count() == 0

    @pytest.mark.unit
    def test_cleanup_removes_only_expired_sessions(self, session_store):
        session_store.set('old', Session.new('user_1', 'weaver'))
        session_store.set('fresh', Session.new('user_2', 'freya'))
        _age(session_store, 'old', 61)

        removed = session_store.cleanup_expired_sessions()

        assert removed == 1
        assert session_store.count() == 1
        assert session_store.get('fresh') is not None

    @pytest.mark.unit
    def test_touch_extends_lifetime(self, session_store):
        session_store.set('abc', Session.new('user_1', 'weaver'))
        _age(session_store, 'abc', 50)

        session_store.touch('abc')
        _age(session_store, 'abc', 50)

        assert session_store.get('abc') is not None


class TestMissingKeys:
    """Tests that operations on absent keys are no-ops."""

    @pytest.mark.unit
    def test_destroy_missing_key_is_noop(self, session_store):
        session_store.set('abc', Session.new('user_1', 'weaver'))

        session_store.destroy('missing')

        assert session_store.count() == 1

    @pytest.mark.unit
    def test_touch_missing_key_is_noop(self, session_store):
        session_store.touch('missing')

        assert session_store.count() == 0
        assert 'missing' not in session_store.sessions

    @pytest.mark.unit
    def test_destroy_removes_session(self, session_store):
        session_store.set('abc', Session.new('user_1', 'weaver'))

        session_store.destroy('abc')

        assert session_store.get('abc') is None

    @pytest.mark.unit
    def test_clear(self, session_store):
        for i in range(3):
            session_store.set(f's{i}', Session.new(f'user_{i}', f'player{i}'))

        session_store.clear()

        assert session_store.count() == 0


class TestConfiguration:
    """Tests for construction parameters."""

    @pytest.mark.unit
    @pytest.mark.parametrize('kwargs', [
        {'max_sessions': 0},
        {'max_sessions': -5},
        {'ttl_seconds': 0},
        {'cleanup_interval_seconds': -1},
    ])
    def test_invalid_parameters_raise(self, kwargs):
        with pytest.raises(ConfigurationException):
            MemorySessionStore(start_cleanup=False, **kwargs)

    @pytest.mark.unit
    def test_defaults(self):
        store = MemorySessionStore(start_cleanup=False)

        assert store.max_sessions == 1000
        assert store.ttl == timedelta(hours=1)
        assert store.cleanup_interval == 300
        assert store.running is False

    @pytest.mark.unit
    def test_start_and_stop_sweep(self):
        store = MemorySessionStore(start_cleanup=False)

        store.start()
        store.start()  # second start is a no-op
        assert store.running is True

        store.stop()
        store.stop()
        assert store.running is False


class TestScenarios:
    """End-to-end store scenarios."""

    @pytest.mark.unit
    def test_capacity_scenario(self):
        """max_sessions=3: session4 evicts session1."""
        store = MemorySessionStore(max_sessions=3, start_cleanup=False)
        for i in range(1, 4):
            store.set(f'session{i}', Session.new(f'user_{i}', f'player{i}'))
            time.sleep(0.01)

        store.set('session4', Session.new('user_4', 'player4'))

        assert store.count() == 3
        assert store.get('session1') is None
        assert store.get('session4') is not None

    @pytest.mark.unit
    def test_background_sweep_scenario(self):
        """ttl=100ms, sweep every 50ms: the session is gone without any get()."""
        store = MemorySessionStore(ttl_seconds=0.1, cleanup_interval_seconds=0.05)
        try:
            store.set('session1', Session.new('user_1', 'weaver'))
            time.sleep(0.25)

            assert store.count() == 0
        finally:
            store.stop()

    @pytest.mark.unit
    def test_concurrent_writers_respect_capacity(self):
        store = MemorySessionStore(max_sessions=50, start_cleanup=False)

        def writer(prefix):
            for i in range(100):
                store.set(f'{prefix}-{i}', Session.new(prefix, prefix))

        threads = [threading.Thread(target=writer, args=(f't{n}',)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 50
