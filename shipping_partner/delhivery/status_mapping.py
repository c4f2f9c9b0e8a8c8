from schema.base import ShipmentStatus

# StatusType -> Status -> shared status
status_mapping = {
    "UD": {
        "Manifested": ShipmentStatus.BOOKED,
        "Not Picked": ShipmentStatus.BOOKED,
        "Open": ShipmentStatus.BOOKED,
        "Scheduled": ShipmentStatus.BOOKED,
        "In Transit": ShipmentStatus.IN_TRANSIT,
        "Pending": ShipmentStatus.IN_TRANSIT,
        "Dispatched": ShipmentStatus.OUT_FOR_DELIVERY,
    },
    "PP": {
        "Open": ShipmentStatus.BOOKED,
        "Scheduled": ShipmentStatus.BOOKED,
        "Dispatched": ShipmentStatus.BOOKED,
    },
    "PU": {
        "In Transit": ShipmentStatus.IN_TRANSIT,
        "Pending": ShipmentStatus.IN_TRANSIT,
        "Dispatched": ShipmentStatus.IN_TRANSIT,
    },
    "DL": {
        "Delivered": ShipmentStatus.DELIVERED,
        # returned to origin
        "RTO": ShipmentStatus.EXCEPTION,
        "DTO": ShipmentStatus.EXCEPTION,
    },
    "RT": {
        "In Transit": ShipmentStatus.EXCEPTION,
        "Pending": ShipmentStatus.EXCEPTION,
        "Dispatched": ShipmentStatus.EXCEPTION,
    },
    "CN": {
        "Canceled": ShipmentStatus.CANCELLED,
        "Cancelled": ShipmentStatus.CANCELLED,
        "Closed": ShipmentStatus.CANCELLED,
    },
}
