"""
Flag parsing, generation and verification.

Flag format: YGGDRASIL{REALM_NAME:xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx}

Two sources of truth for the expected flag of a realm:
    - HMAC mode: when a master secret is configured, the flag for a
      (realm, user) pair is derived with HMAC-SHA256, so every player
      gets their own flags and nothing has to be stored.
    - Static mode: otherwise, one fixed flag per realm from STATIC_FLAGS
      (or a table passed in), matching what the realm services embed.
"""
import hashlib
import hmac
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from gatekeeper.error_handlers.exceptions import ConfigurationException


MAX_FLAG_LENGTH = 100
MIN_MASTER_SECRET_LENGTH = 32

FLAG_PATTERN = re.compile(
    r'^YGGDRASIL\{([A-Z_]+):([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\}$',
    re.IGNORECASE
)

STATIC_FLAGS: Dict[str, str] = {
    'NIFLHEIM': 'YGGDRASIL{NIFLHEIM:ba6cd20a-a60f-4857-992a-c0e06f0534bf}',
    'HELHEIM': 'YGGDRASIL{HELHEIM:e1a93eab-4720-4ef8-a2eb-342a77e9f200}',
    'SVARTALFHEIM': 'YGGDRASIL{SVARTALFHEIM:77c7df6c-2625-45aa-a00f-37a415c8a97e}',
    'JOTUNHEIM': 'YGGDRASIL{JOTUNHEIM:522fb48d-0399-41ea-8e8d-9745900585bc}',
    'MUSPELHEIM': 'YGGDRASIL{MUSPELHEIM:b1aea18f-ce5b-4f34-b45a-99166cb72236}',
    'NIDAVELLIR': 'YGGDRASIL{NIDAVELLIR:969cb870-99ee-4431-b645-3fe818fc2ceb}',
    'VANAHEIM': 'YGGDRASIL{VANAHEIM:4f0c9d2e-8b1a-4c6e-9d3f-2a7b5e1c8f90}',
    'MIDGARD': 'YGGDRASIL{MIDGARD:7e3a1b9c-5d2f-4a8e-b6c1-0f9d2e4a7b35}',
    'ALFHEIM': 'YGGDRASIL{ALFHEIM:c2d8e4f1-9a3b-4e7c-8d5f-6b1a0c3e9d27}',
    'ASGARD': 'YGGDRASIL{ASGARD:91b7f3a5-2c6d-4e8f-a0b4-d3c5e7f9a1b8}',
}


@dataclass(frozen=True)
class ParsedFlag:
    realm: str
    uuid: str


def parse_flag(flag) -> Optional[ParsedFlag]:
    """
    Parse a submitted flag.

    Returns:
        ParsedFlag with the realm upper-cased and the uuid lower-cased,
        or None if the value is not a well-formed flag
    """
    if not flag or not isinstance(flag, str):
        return None

    cleaned = flag.strip()
    if len(cleaned) > MAX_FLAG_LENGTH:
        return None

    match = FLAG_PATTERN.match(cleaned)
    if not match:
        return None

    realm, uuid = match.groups()
    return ParsedFlag(realm=realm.upper(), uuid=uuid.lower())


class FlagService:
    """Produces and checks the expected flag for a (realm, user) pair."""

    def __init__(self, master_secret: Optional[str] = None, static_flags: Optional[Dict[str, str]] = None):
        if master_secret is not None and master_secret != '' and len(master_secret) < MIN_MASTER_SECRET_LENGTH:
            raise ConfigurationException(
                f'Flag master secret must be at least {MIN_MASTER_SECRET_LENGTH} characters'
            )
        self.master_secret = master_secret or None
        self.static_flags = {
            realm.upper(): value
            for realm, value in (static_flags if static_flags is not None else STATIC_FLAGS).items()
        }

    @property
    def mode(self) -> str:
        return 'hmac' if self.master_secret else 'static'

    def generate_flag(self, realm: str, user_id: str) -> str:
        """
        Deterministic per-user flag: the first 32 hex digits of
        HMAC-SHA256(master_secret, 'REALM:user_id') laid out as a UUID.
        """
        if not self.master_secret:
            raise ConfigurationException('Flag generation requires a master secret')
        if not realm or not user_id:
            raise ValueError('realm and user_id are required')

        realm_id = realm.strip().upper()
        message = f'{realm_id}:{user_id.strip()}'.encode('utf-8')
        digest = hmac.new(self.master_secret.encode('utf-8'), message, hashlib.sha256).hexdigest()

        uuid = '-'.join((digest[0:8], digest[8:12], digest[12:16], digest[16:20], digest[20:32]))
        return f'YGGDRASIL{{{realm_id}:{uuid}}}'

    def expected_flag(self, realm: str, user_id: str) -> Optional[str]:
        if self.master_secret:
            return self.generate_flag(realm, user_id)
        return self.static_flags.get(realm.upper())

    def verify(self, flag: str, realm: str, user_id: str) -> bool:
        """True if `flag` is the expected flag for `realm` and `user_id`."""
        submitted = parse_flag(flag)
        if submitted is None or submitted.realm != realm.upper():
            return False

        expected_value = self.expected_flag(realm, user_id)
        expected = parse_flag(expected_value) if expected_value else None
        if expected is None:
            return False

        return hmac.compare_digest(submitted.uuid, expected.uuid)

    def flags_for_user(self, user_id: str, realms: Iterable[str]) -> Dict[str, str]:
        """Expected flag for each realm; realms without a flag are skipped."""
        flags = {}
        for realm in realms:
            value = self.expected_flag(realm, user_id)
            if value:
                flags[realm.upper()] = value
        return flags
