from schema.base import ShipmentStatus

# ekart statuses arrive in mixed case, keys are lower cased
status_mapping = {
    "created": ShipmentStatus.BOOKED,
    "order placed": ShipmentStatus.BOOKED,
    "pickup scheduled": ShipmentStatus.BOOKED,
    "out for pickup": ShipmentStatus.BOOKED,
    "picked up": ShipmentStatus.IN_TRANSIT,
    "shipped": ShipmentStatus.IN_TRANSIT,
    "in transit": ShipmentStatus.IN_TRANSIT,
    "reached destination hub": ShipmentStatus.IN_TRANSIT,
    "out for delivery": ShipmentStatus.OUT_FOR_DELIVERY,
    "delivered": ShipmentStatus.DELIVERED,
    "undelivered": ShipmentStatus.EXCEPTION,
    "delivery attempted": ShipmentStatus.EXCEPTION,
    "rto": ShipmentStatus.EXCEPTION,
    "rto initiated": ShipmentStatus.EXCEPTION,
    "rto delivered": ShipmentStatus.EXCEPTION,
    "lost": ShipmentStatus.EXCEPTION,
    "damaged": ShipmentStatus.EXCEPTION,
    "cancelled": ShipmentStatus.CANCELLED,
}
