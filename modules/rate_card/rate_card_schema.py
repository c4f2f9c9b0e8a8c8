import enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# schema
from schema.base import ServiceMode
from modules.zones.zone_resolver import Zone


class CodMode(str, enum.Enum):
    # flat charge plus a percentage of the freight
    ADDITIVE = "additive"
    # flat charge or a percentage of the collectable amount, whichever is higher
    GREATER_OF = "greater_of"


class WeightSlab(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper_kg: float
    rates: Dict[Zone, float]


class EligibleWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_kg: float = 0.0
    max_kg: Optional[float] = None

    def contains(self, weight: float) -> bool:
        if weight < self.min_kg:
            return False
        return self.max_kg is None or weight <= self.max_kg


class RateCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    band: str = "standard"
    service_mode: ServiceMode = ServiceMode.SURFACE
    slabs: List[WeightSlab]
    additional_rates: Dict[Zone, float] = {}
    additional_unit_kg: float = 0.5
    cod_charge: float = 0.0
    cod_percent: float = 0.0
    cod_mode: CodMode = CodMode.ADDITIVE
    fuel_surcharge_percent: float = 0.0
    tax_percent: float = 18.0
    min_billable_kg: float = 0.0
    billable_unit_kg: Optional[float] = 0.5
    volumetric_divisor: float = 5000
    eligible_weight: EligibleWeight = EligibleWeight()
    delivery_days: Dict[Zone, int] = {}

    @field_validator("slabs")
    @classmethod
    def validate_slabs(cls, slabs: List[WeightSlab]) -> List[WeightSlab]:
        if not slabs:
            raise ValueError("rate card needs at least one weight slab")

        previous = 0.0
        for slab in slabs:
            if slab.upper_kg <= previous:
                raise ValueError(
                    "slab thresholds must be strictly increasing, got %s after %s"
                    % (slab.upper_kg, previous)
                )
            previous = slab.upper_kg
        return slabs

    @model_validator(mode="after")
    def validate_amounts(self):
        if self.additional_unit_kg <= 0:
            raise ValueError("additional_unit_kg must be greater than 0")
        if self.volumetric_divisor <= 0:
            raise ValueError("volumetric_divisor must be greater than 0")
        for name in ("cod_charge", "cod_percent", "fuel_surcharge_percent", "tax_percent"):
            if getattr(self, name) < 0:
                raise ValueError("%s cannot be negative" % name)
        return self

    @property
    def top_slab(self) -> WeightSlab:
        return self.slabs[-1]


class RateCardResponseModel(BaseModel):
    provider_name: str
    band: str
    service_mode: ServiceMode
    slabs: List[WeightSlab]
    eligible_weight: EligibleWeight
