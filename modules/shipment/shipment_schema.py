import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# schema
from schema.base import PaymentMode, ServiceMode, ShipmentStatus
from modules.rates.rates_schema import RateQuote


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    length: float
    width: float
    height: float


class ContactAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    email: Optional[str] = None


class ShipmentRequest(BaseModel):
    """
    One shipment to price or book. Pincodes, weight and dimensions are checked
    by the zone resolver and weight calculator, which raise the engine's
    ValidationError rather than failing model construction.
    """

    # camelCase on the wire like the other request bodies, field names in code
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    origin_pincode: str = Field(alias="originPincode")
    destination_pincode: str = Field(alias="destinationPincode")
    actual_weight_kg: float = Field(alias="actualWeightKg")
    dimensions: Dimensions
    payment_mode: PaymentMode = Field(default=PaymentMode.PREPAID, alias="paymentMode")
    declared_value: float = Field(default=0.0, alias="declaredValue")
    cod_amount: float = Field(default=0.0, alias="codAmount")
    service_mode: Optional[ServiceMode] = Field(default=None, alias="serviceMode")

    # only needed for booking
    pickup: Optional[ContactAddress] = None
    consignee: Optional[ContactAddress] = None
    product_description: Optional[str] = Field(default=None, alias="productDescription")

    @property
    def is_cod(self) -> bool:
        return self.payment_mode == PaymentMode.COD


class BookingType(str, enum.Enum):
    API_AUTOMATED = "ApiAutomated"
    MANUAL_REQUIRED = "ManualRequired"


class BookingState(str, enum.Enum):
    REQUESTED = "Requested"
    AUTHENTICATING = "Authenticating"
    BOOKING = "Booking"
    CONFIRMED = "Confirmed"
    DEGRADED = "Degraded"
    FAILED = "Failed"


class BookingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    provider_name: str
    awb_or_tracking_id: str
    tracking_url: Optional[str] = None
    booking_type: BookingType
    status: ShipmentStatus = ShipmentStatus.BOOKED
    state: BookingState = BookingState.CONFIRMED
    raw_provider_error: Optional[str] = None
    manual_booking_instructions: List[str] = []
    booked_at: datetime


class TrackingEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ShipmentStatus
    courier_status: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    timestamp: Optional[datetime] = None


class TrackingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    tracking_id: str
    status: ShipmentStatus
    courier_status: Optional[str] = None
    events: List[TrackingEvent] = []
    expected_delivery: Optional[datetime] = None
    fetched_at: datetime


class CancellationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    tracking_id: str
    cancelled: bool
    message: Optional[str] = None


# body of POST /book
class BookShipmentRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)
    provider_name: str = Field(alias="providerName", min_length=1)
    chosen_quote: Optional[RateQuote] = Field(default=None, alias="chosenQuote")
    shipment: ShipmentRequest


# one row of the booking ledger
class BookingLedgerEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    provider_name: str
    state: BookingState
    booking_type: Optional[BookingType] = None
    awb_or_tracking_id: Optional[str] = None
    raw_provider_error: Optional[str] = None
