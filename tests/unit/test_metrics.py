"""
Unit tests for the gatekeeper metrics counters.
"""
import pytest

from gatekeeper.services.metrics import GatekeeperMetrics


@pytest.fixture
def metrics():
    return GatekeeperMetrics()


class TestCounters:
    """Tests for recording submissions and realm access."""

    @pytest.mark.unit
    def test_submissions_counted_by_result_and_realm(self, metrics):
        metrics.record_submission('success', 'NIFLHEIM')
        metrics.record_submission('success', 'niflheim')
        metrics.record_submission('invalid')

        counts = metrics.snapshot()['flag_submissions']
        assert counts[('success', 'niflheim')] == 2
        assert counts[('invalid', 'unknown')] == 1

    @pytest.mark.unit
    def test_denied_access_is_also_forbidden(self, metrics):
        metrics.record_realm_access('niflheim', granted=True)
        metrics.record_realm_access('asgard', granted=False)

        snapshot = metrics.snapshot()
        assert snapshot['realm_access'] == {('niflheim', 'granted'): 1, ('asgard', 'denied'): 1}
        assert snapshot['forbidden_access'] == {'asgard': 1}

    @pytest.mark.unit
    def test_unknown_realm_names_share_one_label(self, metrics):
        metrics.record_realm_access('valhalla', granted=False)
        metrics.record_realm_access('"}\n evil', granted=False)

        assert metrics.snapshot()['forbidden_access'] == {'unknown': 2}


class TestRender:
    """Tests for the Prometheus text output."""

    @pytest.mark.unit
    def test_render_includes_gauge_and_counters(self, metrics):
        metrics.record_submission('error', 'asgard')
        metrics.record_realm_access('asgard', granted=False)

        text = metrics.render(active_sessions=4)

        assert 'gatekeeper_active_sessions 4\n' in text
        assert '# TYPE gatekeeper_flag_submissions_total counter' in text
        assert 'gatekeeper_flag_submissions_total{result="error",realm="asgard"} 1' in text
        assert 'gatekeeper_realm_access_total{realm="asgard",status="denied"} 1' in text
        assert 'gatekeeper_forbidden_access_total{realm="asgard"} 1' in text
        assert text.endswith('\n')

    @pytest.mark.unit
    def test_render_empty(self, metrics):
        text = metrics.render(active_sessions=0)

        assert 'gatekeeper_active_sessions 0' in text
        assert '{' not in text
