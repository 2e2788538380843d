"""
Realm catalogue.

Single source of truth for the ten realms: routing, progression order and
the theme data served to the frontend. Order 10 (Niflheim) is the entry
realm, order 1 (Asgard) the final one.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple


ENTRY_ORDER = 10
FINAL_ORDER = 1


@dataclass(frozen=True)
class RealmTheme:
    primary_color: str
    image: str
    category: str


@dataclass(frozen=True)
class Realm:
    name: str
    display_name: str
    description: str
    order: int
    internal_url: str
    theme: RealmTheme

    @property
    def flag_id(self) -> str:
        """Realm identifier as it appears inside a flag, e.g. NIFLHEIM."""
        return self.name.upper()

    def to_dict(self, locked: bool) -> dict:
        return {
            'name': self.name,
            'displayName': self.display_name,
            'description': self.description,
            'order': self.order,
            'locked': locked,
            'theme': {
                'primaryColor': self.theme.primary_color,
                'image': self.theme.image,
                'category': self.theme.category,
            },
        }


def _realm(name, display_name, description, order, color, category):
    return Realm(
        name=name,
        display_name=display_name,
        description=description,
        order=order,
        internal_url=f'http://{name}:3000',
        theme=RealmTheme(
            primary_color=color,
            image=f'/assets/realms/{name}.jpg',
            category=category,
        ),
    )


# Canonical order, hardest first
REALMS: Tuple[Realm, ...] = (
    _realm('niflheim', 'Niflheim', 'Cryo-Stasis Facility - Exceptional Conditions',
           10, '#60a5fa', 'A10:2025 Exceptional Conditions'),
    _realm('helheim', 'Helheim', 'Memorial Forum - Logging & Alerting Failures',
           9, '#6b7280', 'A09:2025 Logging & Alerting Failures'),
    _realm('svartalfheim', 'Svartalfheim', 'Dwarven Forge - Software/Data Integrity',
           8, '#78716c', 'A08:2025 Software/Data Integrity'),
    _realm('jotunheim', 'Jotunheim', 'Ice Giant Stronghold - Authentication Failures',
           7, '#38bdf8', 'A07:2025 Authentication Failures'),
    _realm('muspelheim', 'Muspelheim', 'Fire Realm Trading Post - Insecure Design',
           6, '#f97316', 'A06:2025 Insecure Design'),
    _realm('nidavellir', 'Nidavellir', 'Mining Facility - Injection Vulnerabilities',
           5, '#a16207', 'A05:2025 Injection'),
    _realm('vanaheim', 'Vanaheim', 'Merchant Realm - Cryptographic Failures',
           4, '#10b981', 'A04:2025 Cryptographic Failures'),
    _realm('midgard', 'Midgard', 'Marketplace - Supply Chain Failures',
           3, '#a855f7', 'A03:2025 Supply Chain Failures'),
    _realm('alfheim', 'Alfheim', 'Cloud Realm - Security Misconfiguration',
           2, '#3b82f6', 'A02:2025 Security Misconfiguration'),
    _realm('asgard', 'Asgard', 'Golden Citadel - Broken Access Control',
           1, '#eab308', 'A01:2025 Broken Access Control'),
)

_BY_NAME = {realm.name: realm for realm in REALMS}
_BY_ORDER = {realm.order: realm for realm in REALMS}


def get_realm(name: Optional[str]) -> Optional[Realm]:
    """Look up a realm by name, case-insensitively."""
    if not name or not isinstance(name, str):
        return None
    return _BY_NAME.get(name.strip().lower())


def get_realm_by_order(order: int) -> Optional[Realm]:
    return _BY_ORDER.get(order)


def get_next_realm(realm: Realm) -> Optional[Realm]:
    """Realm unlocked by solving `realm`; None after Asgard."""
    return _BY_ORDER.get(realm.order - 1)


def realms_sorted(ascending: bool = False) -> List[Realm]:
    return sorted(REALMS, key=lambda r: r.order, reverse=not ascending)
