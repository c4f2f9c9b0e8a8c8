"""
Wires the engine together: one rate card registry, one credential cache and
one shared httpx client for all courier adapters, plus the checker, the
aggregator and the booking orchestrator built on top of them.

The FastAPI app builds a single engine on startup and keeps it on app.state;
controllers get it through the get_engine dependency.
"""

from typing import Dict, Iterable, Optional

import httpx
from fastapi import Request

from logger import logger
from settings import (
    ENABLED_PROVIDERS,
    OPTIMISTIC_SERVICEABILITY,
    PROVIDER_HTTP_TIMEOUT_SECONDS,
    PROVIDER_QUOTE_TIMEOUT_SECONDS,
    provider_credentials,
)

# data
from data.courier_service_mapping import courier_service_mapping

# services
from modules.credentials import CredentialCache
from modules.rate_card.rate_card_service import RateCardRegistry
from modules.rates.rates_service import RateAggregator
from modules.serviceability.serviceability_service import ServiceabilityChecker
from modules.shipment.booking_store import BookingStore, SqlBookingStore
from modules.shipment.shipment_service import BookingOrchestrator


class ShippingEngine:
    def __init__(
        self,
        adapters: Dict,
        rate_cards: RateCardRegistry,
        credential_cache: CredentialCache,
        checker: ServiceabilityChecker,
        aggregator: RateAggregator,
        orchestrator: BookingOrchestrator,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.adapters = adapters
        self.rate_cards = rate_cards
        self.credential_cache = credential_cache
        self.checker = checker
        self.aggregator = aggregator
        self.orchestrator = orchestrator
        self._client = client

    @property
    def enabled_providers(self):
        return list(self.adapters)

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()


def build_engine(
    enabled_providers: Iterable[str] = None,
    credentials: Optional[Dict[str, Dict]] = None,
    rate_cards: Optional[RateCardRegistry] = None,
    credential_cache: Optional[CredentialCache] = None,
    booking_store: Optional[BookingStore] = None,
    client: Optional[httpx.AsyncClient] = None,
    optimistic_serviceability: bool = OPTIMISTIC_SERVICEABILITY,
    quote_timeout: float = PROVIDER_QUOTE_TIMEOUT_SECONDS,
    adapter_classes: Optional[Dict] = None,
) -> ShippingEngine:
    enabled_providers = list(enabled_providers or ENABLED_PROVIDERS)
    credentials = credentials if credentials is not None else provider_credentials()
    rate_cards = rate_cards or RateCardRegistry()
    credential_cache = credential_cache or CredentialCache()
    booking_store = booking_store or SqlBookingStore()
    adapter_classes = adapter_classes or courier_service_mapping
    client = client or httpx.AsyncClient(timeout=PROVIDER_HTTP_TIMEOUT_SECONDS)

    adapters = {}
    for provider_name in enabled_providers:
        adapter_class = adapter_classes.get(provider_name)
        if adapter_class is None:
            logger.warning(msg="No adapter for enabled provider %s" % provider_name)
            continue

        adapters[provider_name] = adapter_class(
            credentials.get(provider_name, {}),
            credential_cache,
            rate_cards,
            client=client,
        )

    checker = ServiceabilityChecker(adapters, optimistic=optimistic_serviceability)
    engine = ShippingEngine(
        adapters=adapters,
        rate_cards=rate_cards,
        credential_cache=credential_cache,
        checker=checker,
        aggregator=RateAggregator(adapters, checker, timeout=quote_timeout),
        orchestrator=BookingOrchestrator(adapters, booking_store, checker),
        client=client,
    )

    logger.info(msg="Shipping engine ready with providers: %s" % ", ".join(adapters))
    return engine


def get_engine(request: Request) -> ShippingEngine:
    return request.app.state.engine
