import enum

from pydantic import BaseModel
from typing import Any


# Generic response model for all responses
class GenericResponseModel(BaseModel):
    status_code: int
    message: str = None
    status: bool = False
    data: Any = {}


class PaymentMode(str, enum.Enum):
    COD = "COD"
    PREPAID = "Prepaid"


class ServiceMode(str, enum.Enum):
    SURFACE = "Surface"
    AIR = "Air"


# courier status vocabularies are all mapped onto this one
class ShipmentStatus(str, enum.Enum):
    BOOKED = "Booked"
    IN_TRANSIT = "InTransit"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    EXCEPTION = "Exception"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"
