from schema.base import ShipmentStatus

status_mapping = {
    "DRC": ShipmentStatus.BOOKED,  # data received
    "OFP": ShipmentStatus.BOOKED,  # out for pickup
    "PND": ShipmentStatus.BOOKED,  # pickup not done
    "PUD": ShipmentStatus.IN_TRANSIT,  # picked up
    "PKD": ShipmentStatus.IN_TRANSIT,
    "IT": ShipmentStatus.IN_TRANSIT,
    "RAD": ShipmentStatus.IN_TRANSIT,  # reached at destination hub
    "OFD": ShipmentStatus.OUT_FOR_DELIVERY,
    "DLVD": ShipmentStatus.DELIVERED,
    "UD": ShipmentStatus.EXCEPTION,  # undelivered
    "RTON": ShipmentStatus.EXCEPTION,
    "RT": ShipmentStatus.EXCEPTION,
    "RT-IT": ShipmentStatus.EXCEPTION,
    "RT-DL": ShipmentStatus.EXCEPTION,
    "LOST": ShipmentStatus.EXCEPTION,
    "STD": ShipmentStatus.EXCEPTION,  # shipment damaged
    "CAN": ShipmentStatus.CANCELLED,
    "CANCELLED": ShipmentStatus.CANCELLED,
}
