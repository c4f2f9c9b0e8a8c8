"""
Zone Resolver

Classifies an origin/destination pincode pair into a pricing zone. Every
courier can bring its own ZoneTable (rule order, prefix lengths, metro set and
special ranges); the classification is a pure function of the two pincodes and
the table.

Usage:
    zone = resolve_zone("400001", "110001")                      # MetroToMetro
    table = ZoneTable(special_match=SpecialZoneMatch.DESTINATION)
    zone = resolve_zone("400001", "793001", table)                # NorthEastJK
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from data.locations import metro_cities, postal_circles, special_zone
from utils.exceptions import ValidationError

PINCODE_PATTERN = re.compile(r"^\d{6}$")


class Zone(str, enum.Enum):
    SAME_CITY = "SameCity"
    SAME_STATE = "SameState"
    METRO_TO_METRO = "MetroToMetro"
    REST_OF_INDIA = "RestOfIndia"
    NORTH_EAST_JK = "NorthEastJK"


class ZoneRule(str, enum.Enum):
    SAME_CITY = "same_city"
    SAME_STATE = "same_state"
    METRO = "metro"
    SPECIAL = "special"


class SpecialZoneMatch(str, enum.Enum):
    BOTH = "both"
    EITHER = "either"
    DESTINATION = "destination"


@dataclass(frozen=True)
class ZoneTable:
    rules: Tuple[ZoneRule, ...] = (
        ZoneRule.SAME_CITY,
        ZoneRule.SAME_STATE,
        ZoneRule.METRO,
        ZoneRule.SPECIAL,
    )
    city_prefix_length: int = 3
    state_prefix_length: int = 2
    metro_prefixes: FrozenSet[str] = frozenset(metro_cities)
    # prefix -> state code; when empty the raw state prefixes are compared
    state_codes: Dict[str, str] = field(default_factory=lambda: dict(postal_circles))
    special_ranges: Tuple[Tuple[int, int], ...] = tuple(special_zone)
    special_match: SpecialZoneMatch = SpecialZoneMatch.BOTH

    def state_of(self, pincode: str) -> str:
        prefix = pincode[: self.state_prefix_length]
        return self.state_codes.get(prefix, prefix)

    def is_metro(self, pincode: str) -> bool:
        return pincode[: self.city_prefix_length] in self.metro_prefixes

    def is_special(self, pincode: str) -> bool:
        district = int(pincode[:3])
        return any(low <= district <= high for low, high in self.special_ranges)


DEFAULT_ZONE_TABLE = ZoneTable()


def validate_pincode(pincode, label: str = "pincode") -> str:
    value = str(pincode).strip() if pincode is not None else ""
    if not PINCODE_PATTERN.match(value):
        raise ValidationError("Invalid %s: %s" % (label, pincode))
    return value


def _special_matches(table: ZoneTable, origin: str, destination: str) -> bool:
    if table.special_match == SpecialZoneMatch.DESTINATION:
        return table.is_special(destination)
    if table.special_match == SpecialZoneMatch.EITHER:
        return table.is_special(origin) or table.is_special(destination)
    return table.is_special(origin) and table.is_special(destination)


def _rule_zone(rule: ZoneRule, table: ZoneTable, origin: str, destination: str) -> Optional[Zone]:
    if rule == ZoneRule.SAME_CITY:
        length = table.city_prefix_length
        if origin[:length] == destination[:length]:
            return Zone.SAME_CITY

    elif rule == ZoneRule.SAME_STATE:
        if table.state_of(origin) == table.state_of(destination):
            return Zone.SAME_STATE

    elif rule == ZoneRule.METRO:
        if table.is_metro(origin) and table.is_metro(destination):
            return Zone.METRO_TO_METRO

    elif rule == ZoneRule.SPECIAL:
        if _special_matches(table, origin, destination):
            return Zone.NORTH_EAST_JK

    return None


def resolve_zone(
    origin_pincode, destination_pincode, zone_table: ZoneTable = DEFAULT_ZONE_TABLE
) -> Zone:
    origin = validate_pincode(origin_pincode, "origin pincode")
    destination = validate_pincode(destination_pincode, "destination pincode")

    # first matching rule wins
    for rule in zone_table.rules:
        zone = _rule_zone(rule, zone_table, origin, destination)
        if zone is not None:
            return zone

    return Zone.REST_OF_INDIA
