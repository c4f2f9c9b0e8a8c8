from schema.base import ShipmentStatus

# ScanType -> "<ScanCode>-<ScanGroupType>" -> shared status
status_mapping = {
    "PU": {
        "015-S": ShipmentStatus.IN_TRANSIT,  # shipment picked up
        "014-S": ShipmentStatus.BOOKED,  # pickup scheduled
    },
    "UD": {
        "001-S": ShipmentStatus.IN_TRANSIT,
        "003-S": ShipmentStatus.IN_TRANSIT,  # outscan to hub
        "100-S": ShipmentStatus.IN_TRANSIT,  # inscan at destination
        "002-S": ShipmentStatus.OUT_FOR_DELIVERY,
        "074-T": ShipmentStatus.EXCEPTION,  # consignee not available
        "025-T": ShipmentStatus.EXCEPTION,  # refused by consignee
        "027-T": ShipmentStatus.EXCEPTION,  # address incomplete
    },
    "DL": {
        "000-T": ShipmentStatus.DELIVERED,
        "188-T": ShipmentStatus.DELIVERED,  # delivered to neighbour
    },
    "RT": {
        "000-T": ShipmentStatus.EXCEPTION,  # returned to shipper
    },
}

# fallback when a code is not listed above
scan_type_defaults = {
    "PU": ShipmentStatus.IN_TRANSIT,
    "UD": ShipmentStatus.IN_TRANSIT,
    "DL": ShipmentStatus.DELIVERED,
    "RT": ShipmentStatus.EXCEPTION,
}
