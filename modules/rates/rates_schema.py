import enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# schema
from schema.base import PaymentMode, ServiceMode
from modules.zones.zone_resolver import Zone


class QuoteSource(str, enum.Enum):
    RATE_CARD = "RateCard"
    LIVE_API = "LiveApi"


class RateBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_rate: float
    additional_weight_charge: float = 0.0
    cod_charge: float = 0.0
    fuel_surcharge: float = 0.0
    tax: float = 0.0
    total: float


class RateQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    service_mode: ServiceMode
    breakdown: RateBreakdown
    chargeable_weight: float
    zone: Optional[Zone] = None
    estimated_delivery_days: Optional[int] = None
    source: QuoteSource = QuoteSource.RATE_CARD
    band: Optional[str] = None

    @property
    def total(self) -> float:
        return self.breakdown.total


# body of POST /rates, field names follow the public calculator form
class RateCalculatorParamsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_pincode: str = Field(alias="fromPincode")
    to_pincode: str = Field(alias="toPincode")
    weight: float = Field(gt=0)
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    mode: Optional[ServiceMode] = None
    order_type: str = Field(default="prepaid", alias="orderType", pattern="(?i)^(cod|prepaid)$")
    cod_collectable_amount: float = Field(default=0.0, ge=0, alias="codCollectableAmount")
    declared_value: Optional[float] = Field(default=None, ge=0, alias="declaredValue")

    @property
    def payment_mode(self) -> PaymentMode:
        return PaymentMode.COD if self.order_type.lower() == "cod" else PaymentMode.PREPAID


class RateCalculationResponseModel(BaseModel):
    zone: Optional[Zone] = None
    calculations: List[RateQuote] = []
