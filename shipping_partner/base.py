"""
Courier adapter contract.

Every courier integration subclasses ShippingPartner and fills in the
provider specific request and response shapes. Transport concerns live here
once: the shared httpx client, timeouts, the transient retry used by quote and
serviceability calls, and translation of HTTP failures into engine errors.

Adapters raise engine errors (ProviderAPIError, AuthenticationError,
ProviderTimeoutError) instead of returning error payloads; the rate
aggregator and the booking orchestrator decide what a failure means.
"""

import http
from typing import Dict, Optional, Tuple

import httpx

from logger import logger
from settings import PROVIDER_HTTP_TIMEOUT_SECONDS, TRANSIENT_RETRY_COUNT

# schema
from schema.base import ShipmentStatus
from modules.rates.rates_schema import RateQuote
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import (
    BookingResult,
    CancellationResult,
    ShipmentRequest,
    TrackingSnapshot,
)

# services
from modules.credentials.credential_cache import CredentialCache
from modules.rate_card.rate_card_service import RateCardRegistry, RateCardService
from modules.zones.zone_resolver import DEFAULT_ZONE_TABLE, ZoneTable

# utils
from utils.exceptions import (
    AuthenticationError,
    ProviderAPIError,
    ProviderError,
    ProviderTimeoutError,
)

# gateway style failures are worth one more try, other 5xx are not
TRANSIENT_STATUS_CODES = {
    http.HTTPStatus.BAD_GATEWAY,
    http.HTTPStatus.SERVICE_UNAVAILABLE,
    http.HTTPStatus.GATEWAY_TIMEOUT,
}


class ShippingPartner:
    # courier slug, also the key in courier_service_mapping and the rate cards
    name: str = None
    display_name: str = None
    zone_table: ZoneTable = DEFAULT_ZONE_TABLE
    # kg -> g for couriers whose payloads take grams
    weight_multiplier: int = 1

    def __init__(
        self,
        credentials: Dict[str, str],
        credential_cache: CredentialCache,
        rate_cards: RateCardRegistry,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = PROVIDER_HTTP_TIMEOUT_SECONDS,
        retry_count: int = TRANSIENT_RETRY_COUNT,
    ):
        self.credentials = credentials or {}
        self.credential_cache = credential_cache
        self.rate_cards = rate_cards
        self.timeout = timeout
        self.retry_count = retry_count
        self._client = client or httpx.AsyncClient(timeout=timeout)

        credential_cache.register(self.name, self.fetch_token)

    # ------------------------------------------------------------------
    # contract
    # ------------------------------------------------------------------

    async def fetch_token(self) -> Tuple[str, Optional[float]]:
        """
        One authentication round trip: (token, expires_in seconds or None).
        Called only by the credential cache.
        """
        raise NotImplementedError

    async def authenticate(self) -> str:
        return await self.credential_cache.get_token(self.name)

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        raise NotImplementedError

    async def quote(self, shipment_request: ShipmentRequest) -> RateQuote:
        # contracted couriers price locally; live pricing couriers override this
        return RateCardService.quote_shipment(
            self.rate_cards, self.name, shipment_request, self.zone_table
        )

    async def book(
        self,
        shipment_request: ShipmentRequest,
        chosen_quote: Optional[RateQuote],
        order_id: str,
    ) -> BookingResult:
        raise NotImplementedError

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        raise NotImplementedError

    async def cancel(self, tracking_id: str) -> CancellationResult:
        raise NotImplementedError

    def tracking_url(self, tracking_id: str) -> Optional[str]:
        return None

    async def aclose(self):
        await self._client.aclose()

    # ------------------------------------------------------------------
    # helpers shared by the adapters
    # ------------------------------------------------------------------

    def to_payload_weight(self, weight_kg: float):
        if self.weight_multiplier == 1:
            return round(float(weight_kg), 3)
        return int(round(float(weight_kg) * self.weight_multiplier))

    @staticmethod
    def map_status(mapping: Dict, *keys) -> ShipmentStatus:
        """Walk a nested courier status mapping, Unknown when any key is missing."""
        node = mapping
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return ShipmentStatus.UNKNOWN
            node = node[key]
        return node if isinstance(node, ShipmentStatus) else ShipmentStatus.UNKNOWN

    async def _request(
        self,
        method: str,
        url: str,
        *,
        retries: int = 0,
        expect: str = "json",
        **kwargs,
    ):
        """
        Send one request and return the parsed body.

        retries > 0 re-sends on transient failures (timeouts, connection
        errors, gateway errors). Booking and cancellation pass retries=0.
        """
        attempt = 0
        while True:
            try:
                return await self._send(method, url, expect, **kwargs)

            except ProviderError as e:
                if e.transient and attempt < retries:
                    attempt += 1
                    logger.warning(
                        msg="{} {} {} failed, retry {}/{}: {}".format(
                            self.name, method, url, attempt, retries, e.message
                        )
                    )
                    continue
                raise

    async def _send(self, method: str, url: str, expect: str, **kwargs):
        logger.info(msg="%s request %s %s" % (self.name, method, url))

        try:
            response = await self._client.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                "Request to %s timed out: %s" % (url, type(e).__name__), self.name
            )
        except httpx.TransportError as e:
            raise ProviderAPIError(
                "Unable to reach %s: %s" % (url, e), self.name, transient=True
            )

        logger.info(
            msg="%s response %s %s -> %s"
            % (self.name, method, url, response.status_code)
        )

        if response.status_code == http.HTTPStatus.UNAUTHORIZED:
            # token rejected, the next call authenticates again
            self.credential_cache.invalidate(self.name)
            raise AuthenticationError(
                "Credentials rejected by provider",
                self.name,
                status_code=response.status_code,
                raw_response=response.text,
            )

        if response.status_code >= 400:
            raise ProviderAPIError(
                "Provider returned HTTP %d" % response.status_code,
                self.name,
                status_code=response.status_code,
                transient=response.status_code in TRANSIENT_STATUS_CODES,
                raw_response=response.text,
            )

        if expect == "text":
            return response.text

        try:
            return response.json()
        except ValueError:
            raise ProviderAPIError(
                "Provider returned a non JSON body",
                self.name,
                status_code=response.status_code,
                raw_response=response.text,
            )
