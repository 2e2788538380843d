"""
Unit tests for the realm catalogue.
"""
import pytest

from gatekeeper.realms import (
    REALMS,
    ENTRY_ORDER,
    FINAL_ORDER,
    get_realm,
    get_realm_by_order,
    get_next_realm,
    realms_sorted
)


class TestRealmCatalogue:

    @pytest.mark.unit
    def test_ten_realms_with_unique_orders(self):
        assert len(REALMS) == 10
        assert sorted(r.order for r in REALMS) == list(range(FINAL_ORDER, ENTRY_ORDER + 1))
        assert len({r.name for r in REALMS}) == 10

    @pytest.mark.unit
    def test_lookup(self):
        assert get_realm('Niflheim').order == 10
        assert get_realm(' asgard ').order == 1
        assert get_realm('valhalla') is None
        assert get_realm(None) is None
        assert get_realm_by_order(9).name == 'helheim'

    @pytest.mark.unit
    def test_next_realm_descends(self):
        assert get_next_realm(get_realm('niflheim')).name == 'helheim'
        assert get_next_realm(get_realm('asgard')) is None

    @pytest.mark.unit
    def test_sorting(self):
        assert realms_sorted()[0].name == 'niflheim'
        assert realms_sorted(ascending=True)[0].name == 'asgard'

    @pytest.mark.unit
    def test_internal_url_and_flag_id(self):
        realm = get_realm('midgard')
        assert realm.internal_url == 'http://midgard:3000'
        assert realm.flag_id == 'MIDGARD'
