import asyncio
import http
from typing import Dict, Iterable, List, Optional

from logger import logger
from settings import PROVIDER_QUOTE_TIMEOUT_SECONDS

# schema
from schema.base import GenericResponseModel
from modules.rates.rates_schema import (
    RateCalculationResponseModel,
    RateCalculatorParamsModel,
    RateQuote,
)
from modules.shipment.shipment_schema import Dimensions, ShipmentRequest

# services
from modules.serviceability.serviceability_service import ServiceabilityChecker
from modules.zones.zone_resolver import resolve_zone

# utils
from utils.exceptions import EngineError
from utils.weight_calc import chargeable_weight


class RateAggregator:
    """
    Fans a shipment out to every enabled provider and collects the quotes that
    come back in time. A provider that is slow, down, unauthorised or does not
    serve the route is left out of the result; the aggregation itself only
    fails on invalid input.
    """

    def __init__(
        self,
        adapters: Dict,
        checker: ServiceabilityChecker,
        timeout: float = PROVIDER_QUOTE_TIMEOUT_SECONDS,
    ):
        self.adapters = adapters
        self.checker = checker
        self.timeout = timeout

    async def _quote_provider(
        self, provider_name: str, shipment_request: ShipmentRequest
    ) -> RateQuote:
        await self.checker.ensure_route(provider_name, shipment_request)
        return await self.adapters[provider_name].quote(shipment_request)

    async def _bounded_quote(
        self, provider_name: str, shipment_request: ShipmentRequest
    ) -> Optional[RateQuote]:
        try:
            return await asyncio.wait_for(
                self._quote_provider(provider_name, shipment_request),
                timeout=self.timeout,
            )

        except asyncio.TimeoutError:
            logger.warning(
                msg="Excluding {}: no quote within {}s".format(provider_name, self.timeout)
            )
        except EngineError as e:
            logger.warning(
                msg="Excluding {}: {}: {}".format(provider_name, type(e).__name__, e.message)
            )
        except Exception as e:
            logger.error(
                msg="Excluding {}: unexpected error while quoting: {}".format(provider_name, e)
            )

        return None

    async def aggregate(
        self,
        shipment_request: ShipmentRequest,
        enabled_providers: Optional[Iterable[str]] = None,
    ) -> List[RateQuote]:
        # invalid input fails the whole request before any provider is called
        resolve_zone(shipment_request.origin_pincode, shipment_request.destination_pincode)
        chargeable_weight(shipment_request.actual_weight_kg, shipment_request.dimensions)

        if enabled_providers is None:
            enabled_providers = list(self.adapters)

        providers = []
        for provider_name in enabled_providers:
            if provider_name in self.adapters:
                providers.append(provider_name)
            else:
                logger.warning(msg="Skipping {}: no adapter configured".format(provider_name))

        tasks = [
            asyncio.ensure_future(self._bounded_quote(provider_name, shipment_request))
            for provider_name in providers
        ]

        try:
            results = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        quotes = [quote for quote in results if quote is not None]
        quotes.sort(key=lambda quote: (quote.total, quote.provider_name))

        logger.info(
            msg="Aggregated {} quotes from {} providers".format(len(quotes), len(providers))
        )
        return quotes


class RatesService:
    @staticmethod
    def to_shipment_request(rate_params: RateCalculatorParamsModel) -> ShipmentRequest:
        return ShipmentRequest(
            origin_pincode=rate_params.from_pincode,
            destination_pincode=rate_params.to_pincode,
            actual_weight_kg=rate_params.weight,
            dimensions=Dimensions(
                length=rate_params.length,
                width=rate_params.width,
                height=rate_params.height,
            ),
            payment_mode=rate_params.payment_mode,
            cod_amount=rate_params.cod_collectable_amount,
            declared_value=(
                rate_params.declared_value
                if rate_params.declared_value is not None
                else rate_params.cod_collectable_amount
            ),
            service_mode=rate_params.mode,
        )

    @staticmethod
    async def rate_calculation(
        aggregator: RateAggregator,
        rate_params: RateCalculatorParamsModel,
        enabled_providers: Optional[Iterable[str]] = None,
    ) -> GenericResponseModel:
        shipment_request = RatesService.to_shipment_request(rate_params)

        zone = resolve_zone(rate_params.from_pincode, rate_params.to_pincode)
        quotes = await aggregator.aggregate(shipment_request, enabled_providers)

        return GenericResponseModel(
            status_code=http.HTTPStatus.OK,
            status=True,
            message="Rates calculated successfully" if quotes else "No courier available",
            data=RateCalculationResponseModel(zone=zone, calculations=quotes),
        )
