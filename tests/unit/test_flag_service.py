"""
Unit tests for flag parsing, generation and verification.
"""
import re

import pytest

from gatekeeper.error_handlers import ConfigurationException
from gatekeeper.services.flag_service import FlagService, STATIC_FLAGS, parse_flag
from gatekeeper.realms import REALMS


SECRET = 'x' * 32


class TestParseFlag:
    """Tests for parse_flag()."""

    @pytest.mark.unit
    def test_parses_realm_and_uuid(self):
        parsed = parse_flag('YGGDRASIL{NIFLHEIM:ba6cd20a-a60f-4857-992a-c0e06f0534bf}')

        assert parsed.realm == 'NIFLHEIM'
        assert parsed.uuid == 'ba6cd20a-a60f-4857-992a-c0e06f0534bf'

    @pytest.mark.unit
    def test_case_insensitive(self):
        parsed = parse_flag('yggdrasil{niflheim:BA6CD20A-A60F-4857-992A-C0E06F0534BF}')

        assert parsed.realm == 'NIFLHEIM'
        assert parsed.uuid == 'ba6cd20a-a60f-4857-992a-c0e06f0534bf'

    @pytest.mark.unit
    def test_surrounding_whitespace_is_ignored(self):
        assert parse_flag('  YGGDRASIL{ASGARD:91b7f3a5-2c6d-4e8f-a0b4-d3c5e7f9a1b8}\n') is not None

    @pytest.mark.unit
    @pytest.mark.parametrize('value', [
        None,
        '',
        42,
        'FLAG{NIFLHEIM:ba6cd20a-a60f-4857-992a-c0e06f0534bf}',
        'YGGDRASIL{NIFLHEIM:not-a-uuid}',
        'YGGDRASIL{NIFL HEIM:ba6cd20a-a60f-4857-992a-c0e06f0534bf}',
        'YGGDRASIL{NIFLHEIM:ba6cd20a-a60f-4857-992a-c0e06f0534bf}trailing',
        'YGGDRASIL{' + 'A' * 80 + ':ba6cd20a-a60f-4857-992a-c0e06f0534bf}',
    ])
    def test_rejects_malformed_values(self, value):
        assert parse_flag(value) is None


class TestStaticMode:
    """Tests for the static flag table."""

    @pytest.mark.unit
    def test_every_realm_has_a_well_formed_flag(self):
        for realm in REALMS:
            flag = STATIC_FLAGS[realm.flag_id]
            assert parse_flag(flag).realm == realm.flag_id

    @pytest.mark.unit
    def test_verify_static_flag(self):
        service = FlagService()

        assert service.mode == 'static'
        assert service.verify(STATIC_FLAGS['HELHEIM'], 'helheim', 'user_1') is True
        assert service.verify(STATIC_FLAGS['HELHEIM'], 'HELHEIM', 'user_2') is True

    @pytest.mark.unit
    def test_flag_for_other_realm_does_not_verify(self):
        service = FlagService()

        assert service.verify(STATIC_FLAGS['NIFLHEIM'], 'HELHEIM', 'user_1') is False

    @pytest.mark.unit
    def test_wrong_uuid_does_not_verify(self):
        service = FlagService()

        assert service.verify('YGGDRASIL{HELHEIM:00000000-0000-0000-0000-000000000000}', 'HELHEIM', 'user_1') is False

    @pytest.mark.unit
    def test_custom_table(self):
        service = FlagService(static_flags={'niflheim': 'YGGDRASIL{NIFLHEIM:11111111-2222-3333-4444-555555555555}'})

        assert service.verify('YGGDRASIL{NIFLHEIM:11111111-2222-3333-4444-555555555555}', 'NIFLHEIM', 'u') is True
        assert service.expected_flag('HELHEIM', 'u') is None
        assert service.verify(STATIC_FLAGS['HELHEIM'], 'HELHEIM', 'u') is False


class TestHmacMode:
    """Tests for per-user HMAC flags."""

    @pytest.mark.unit
    def test_short_secret_is_rejected(self):
        with pytest.raises(ConfigurationException):
            FlagService(master_secret='too-short')

    @pytest.mark.unit
    def test_generated_flag_is_deterministic_and_well_formed(self):
        service = FlagService(master_secret=SECRET)

        flag = service.generate_flag('niflheim', 'user_1')

        assert flag == service.generate_flag('NIFLHEIM', 'user_1')
        assert re.match(r'^YGGDRASIL\{NIFLHEIM:[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\}$', flag)

    @pytest.mark.unit
    def test_flags_differ_per_user_and_realm(self):
        service = FlagService(master_secret=SECRET)

        assert service.generate_flag('NIFLHEIM', 'user_1') != service.generate_flag('NIFLHEIM', 'user_2')
        assert service.generate_flag('NIFLHEIM', 'user_1') != service.generate_flag('HELHEIM', 'user_1')

    @pytest.mark.unit
    def test_verify_only_accepts_own_flag(self):
        service = FlagService(master_secret=SECRET)
        flag = service.generate_flag('NIFLHEIM', 'user_1')

        assert service.mode == 'hmac'
        assert service.verify(flag, 'NIFLHEIM', 'user_1') is True
        assert service.verify(flag, 'NIFLHEIM', 'user_2') is False
        assert service.verify(STATIC_FLAGS['NIFLHEIM'], 'NIFLHEIM', 'user_1') is False

    @pytest.mark.unit
    def test_flags_for_user(self):
        service = FlagService(master_secret=SECRET)

        flags = service.flags_for_user('user_1', ['niflheim', 'helheim'])

        assert set(flags) == {'NIFLHEIM', 'HELHEIM'}
        assert flags['HELHEIM'] == service.generate_flag('HELHEIM', 'user_1')

    @pytest.mark.unit
    def test_generate_without_secret_raises(self):
        with pytest.raises(ConfigurationException):
            FlagService().generate_flag('NIFLHEIM', 'user_1')
