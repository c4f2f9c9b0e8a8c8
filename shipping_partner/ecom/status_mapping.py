from schema.base import ShipmentStatus

# reason_code_number from the track_me scan stages
status_mapping = {
    "1230": ShipmentStatus.BOOKED,  # soft data uploaded
    "1260": ShipmentStatus.BOOKED,  # pickup scheduled
    "127": ShipmentStatus.BOOKED,  # out for pickup
    "0011": ShipmentStatus.IN_TRANSIT,  # picked up
    "002": ShipmentStatus.IN_TRANSIT,  # inscan
    "003": ShipmentStatus.IN_TRANSIT,  # bagged
    "004": ShipmentStatus.IN_TRANSIT,  # bag inscan at hub
    "005": ShipmentStatus.IN_TRANSIT,  # reached destination
    "006": ShipmentStatus.OUT_FOR_DELIVERY,
    "999": ShipmentStatus.DELIVERED,
    "204": ShipmentStatus.DELIVERED,  # delivered to neighbour
    "200": ShipmentStatus.EXCEPTION,  # consignee not available
    "209": ShipmentStatus.EXCEPTION,  # refused
    "219": ShipmentStatus.EXCEPTION,  # address incorrect
    "228": ShipmentStatus.EXCEPTION,  # door locked
    "333": ShipmentStatus.EXCEPTION,  # shipment lost
    "777": ShipmentStatus.EXCEPTION,  # returned to origin
    "888": ShipmentStatus.EXCEPTION,  # rto delivered
    "000": ShipmentStatus.CANCELLED,
}
