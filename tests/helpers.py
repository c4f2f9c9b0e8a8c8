"""Shared builders and fakes for the test suite."""

import asyncio
from datetime import datetime, timezone

from schema.base import PaymentMode, ServiceMode, ShipmentStatus
from modules.rates.rates_schema import QuoteSource, RateBreakdown, RateQuote
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import (
    BookingResult,
    BookingType,
    CancellationResult,
    ContactAddress,
    Dimensions,
    ShipmentRequest,
    TrackingSnapshot,
)
from modules.zones.zone_resolver import DEFAULT_ZONE_TABLE, Zone
from utils.exceptions import ProviderAPIError

def make_shipment(**overrides) -> ShipmentRequest:
    values = dict(
        origin_pincode="400001",
        destination_pincode="110001",
        actual_weight_kg=1.5,
        dimensions=Dimensions(length=10, width=10, height=10),
        payment_mode=PaymentMode.PREPAID,
        declared_value=1000,
        cod_amount=0,
        pickup=ContactAddress(
            name="Acme Warehouse",
            phone="9876543210",
            address="Plot 4, MIDC Andheri East",
            city="Mumbai",
            state="Maharashtra",
            pincode="400001",
        ),
        consignee=ContactAddress(
            name="Ravi Kumar",
            phone="9123456780",
            address="12 Janpath, Connaught Place",
            city="New Delhi",
            state="Delhi",
            pincode="110001",
        ),
        product_description="Cotton shirts",
    )
    values.update(overrides)
    return ShipmentRequest(**values)


class FakePartner:
    """In-process stand-in for a courier adapter."""

    zone_table = DEFAULT_ZONE_TABLE

    def __init__(
        self,
        name,
        total=100.0,
        delay=0.0,
        quote_error=None,
        serviceable=True,
        cod_available=True,
        serviceability_error=None,
        auth_error=None,
        book_error=None,
        book_delay=0.0,
        cancel_refused=False,
    ):
        self.name = name
        self.display_name = name.title()
        self.total = total
        self.delay = delay
        self.quote_error = quote_error
        self.serviceable = serviceable
        self.cod_available = cod_available
        self.serviceability_error = serviceability_error
        self.auth_error = auth_error
        self.book_error = book_error
        self.book_delay = book_delay
        self.cancel_refused = cancel_refused
        self.quote_calls = 0
        self.book_calls = 0
        self.track_calls = 0
        self.cancel_calls = 0

    async def authenticate(self):
        if self.auth_error is not None:
            raise self.auth_error
        return "token-%s" % self.name

    async def check_serviceability(self, pincode):
        if self.serviceability_error is not None:
            raise self.serviceability_error
        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=self.serviceable,
            cod_available=self.cod_available,
            pickup_available=self.serviceable,
        )

    async def quote(self, shipment_request):
        self.quote_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.quote_error is not None:
            raise self.quote_error
        return RateQuote(
            provider_name=self.name,
            service_mode=ServiceMode.SURFACE,
            breakdown=RateBreakdown(base_rate=self.total, total=self.total),
            chargeable_weight=shipment_request.actual_weight_kg,
            zone=Zone.METRO_TO_METRO,
            source=QuoteSource.RATE_CARD,
        )

    async def book(self, shipment_request, chosen_quote, order_id):
        self.book_calls += 1
        if self.book_delay:
            await asyncio.sleep(self.book_delay)
        if self.book_error is not None:
            raise self.book_error
        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id="AWB%s" % order_id,
            booking_type=BookingType.API_AUTOMATED,
            booked_at=datetime.now(timezone.utc),
        )

    async def track(self, tracking_id):
        self.track_calls += 1
        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=tracking_id,
            status=ShipmentStatus.IN_TRANSIT,
            fetched_at=datetime.now(timezone.utc),
        )

    async def cancel(self, tracking_id):
        self.cancel_calls += 1
        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=not self.cancel_refused,
        )


def gateway_error(provider_name):
    return ProviderAPIError(
        "Provider returned HTTP 503",
        provider_name,
        status_code=503,
        transient=True,
        raw_response="Service Unavailable",
    )
