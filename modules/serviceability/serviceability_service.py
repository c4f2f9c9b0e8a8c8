from typing import Dict

from logger import logger
from settings import OPTIMISTIC_SERVICEABILITY

# schema
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import ShipmentRequest

# utils
from utils.exceptions import ProviderError, ServiceabilityError, ValidationError
from modules.zones.zone_resolver import validate_pincode


class ServiceabilityChecker:
    """
    Answers "does this provider serve this pincode" through the provider's
    adapter. When the provider cannot answer, the optimistic flag decides
    between surfacing the error and assuming the pincode is served.
    """

    def __init__(self, adapters: Dict, optimistic: bool = OPTIMISTIC_SERVICEABILITY):
        self.adapters = adapters
        self.optimistic = optimistic

    def _adapter(self, provider_name: str):
        adapter = self.adapters.get(provider_name)
        if adapter is None:
            raise ValidationError("Unknown provider: %s" % provider_name, provider_name)
        return adapter

    async def is_serviceable(self, provider_name: str, pincode: str) -> ServiceabilityResult:
        validate_pincode(pincode, "pincode")
        adapter = self._adapter(provider_name)

        try:
            return await adapter.check_serviceability(pincode)

        except ProviderError as e:
            if not self.optimistic:
                raise

            logger.warning(
                msg="Serviceability lookup failed for {} {}, assuming serviceable: {}".format(
                    provider_name, pincode, e.message
                )
            )
            return ServiceabilityResult(
                provider_name=provider_name,
                pincode=pincode,
                serviceable=True,
                cod_available=True,
                pickup_available=True,
                assumed=True,
            )

    async def ensure_route(self, provider_name: str, shipment_request: ShipmentRequest):
        origin = await self.is_serviceable(provider_name, shipment_request.origin_pincode)
        if not (origin.serviceable and origin.pickup_available):
            raise ServiceabilityError(
                "Pickup not available at %s" % shipment_request.origin_pincode, provider_name
            )

        destination = await self.is_serviceable(
            provider_name, shipment_request.destination_pincode
        )
        if not destination.serviceable:
            raise ServiceabilityError(
                "Delivery not available at %s" % shipment_request.destination_pincode,
                provider_name,
            )

        if shipment_request.is_cod and not destination.cod_available:
            raise ServiceabilityError(
                "COD not available at %s" % shipment_request.destination_pincode,
                provider_name,
            )

        return origin, destination
