from .zone_resolver import Zone, ZoneRule, ZoneTable, resolve_zone, DEFAULT_ZONE_TABLE
