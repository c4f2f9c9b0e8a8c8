from pydantic import BaseModel, ConfigDict, Field


class ServiceabilityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_name: str
    pincode: str
    serviceable: bool
    cod_available: bool = False
    pickup_available: bool = False
    # produced by the optimistic fallback, not by the provider
    assumed: bool = False


class ServiceabilityParamsModel(BaseModel):
    provider: str = Field(min_length=1)
    pincode: str = Field(pattern=r"^\d{6}$")
