import asyncio

import pytest

from modules.serviceability.serviceability_service import ServiceabilityChecker
from modules.shipment.booking_store import InMemoryBookingStore
from modules.shipment.shipment_schema import BookingState, BookingType
from modules.shipment.shipment_service import BookingOrchestrator
from schema.base import PaymentMode, ShipmentStatus
from utils.exceptions import (
    AuthenticationError,
    BookingConflictError,
    ProviderTimeoutError,
    ServiceabilityError,
    ValidationError,
)
from tests.helpers import FakePartner, gateway_error, make_shipment


def build_orchestrator(*partners, optimistic=False, store=None):
    adapters = {partner.name: partner for partner in partners}
    store = store or InMemoryBookingStore()
    orchestrator = BookingOrchestrator(
        adapters,
        store,
        ServiceabilityChecker(adapters, optimistic=optimistic),
        manual_tracking_base_url="https://track.example.test/",
        support_contact="ops desk",
    )
    return orchestrator, store


@pytest.mark.asyncio
async def test_successful_booking_is_confirmed():
    partner = FakePartner("delhivery")
    orchestrator, store = build_orchestrator(partner)

    result = await orchestrator.book("ORD-1", "delhivery", make_shipment())

    assert result.booking_type == BookingType.API_AUTOMATED
    assert result.state == BookingState.CONFIRMED
    assert result.awb_or_tracking_id == "AWBORD-1"
    entry = await store.get("ORD-1")
    assert entry.state == BookingState.CONFIRMED


@pytest.mark.asyncio
async def test_scenario_d_provider_5xx_degrades_to_manual_booking():
    partner = FakePartner("xpressbees", book_error=gateway_error("xpressbees"))
    orchestrator, store = build_orchestrator(partner)

    result = await orchestrator.book("ORD-2", "xpressbees", make_shipment())

    assert result.booking_type == BookingType.MANUAL_REQUIRED
    assert result.state == BookingState.DEGRADED
    assert result.awb_or_tracking_id.startswith("MB")
    assert result.tracking_url == "https://track.example.test/" + result.awb_or_tracking_id
    assert result.raw_provider_error == "Service Unavailable"
    assert result.manual_booking_instructions
    assert any("ORD-2" in line for line in result.manual_booking_instructions)
    assert partner.book_calls == 1

    entry = await store.get("ORD-2")
    assert entry.booking_type == BookingType.MANUAL_REQUIRED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "partner",
    [
        FakePartner("ekart", auth_error=AuthenticationError("rejected", "ekart")),
        FakePartner("ekart", book_error=ProviderTimeoutError("timed out", "ekart")),
        FakePartner("ekart", book_error=KeyError("AWBNo")),
    ],
)
async def test_provider_failures_degrade(partner):
    orchestrator, _ = build_orchestrator(partner)

    result = await orchestrator.book("ORD-3", "ekart", make_shipment())

    assert result.booking_type == BookingType.MANUAL_REQUIRED


@pytest.mark.asyncio
async def test_auth_failure_never_reaches_booking_call():
    partner = FakePartner("ekart", auth_error=AuthenticationError("rejected", "ekart"))
    orchestrator, _ = build_orchestrator(partner)

    await orchestrator.book("ORD-4", "ekart", make_shipment())

    assert partner.book_calls == 0


@pytest.mark.asyncio
async def test_duplicate_order_is_rejected_without_calling_provider():
    partner = FakePartner("delhivery")
    orchestrator, _ = build_orchestrator(partner)

    await orchestrator.book("ORD-5", "delhivery", make_shipment())
    with pytest.raises(BookingConflictError):
        await orchestrator.book("ORD-5", "delhivery", make_shipment())

    assert partner.book_calls == 1


@pytest.mark.asyncio
async def test_degraded_order_cannot_be_booked_again():
    partner = FakePartner("delhivery", book_error=gateway_error("delhivery"))
    orchestrator, _ = build_orchestrator(partner)

    await orchestrator.book("ORD-6", "delhivery", make_shipment())
    with pytest.raises(BookingConflictError):
        await orchestrator.book("ORD-6", "delhivery", make_shipment())

    assert partner.book_calls == 1


@pytest.mark.asyncio
async def test_concurrent_duplicates_book_once():
    partner = FakePartner("delhivery")
    orchestrator, _ = build_orchestrator(partner)

    results = await asyncio.gather(
        *[orchestrator.book("ORD-7", "delhivery", make_shipment()) for _ in range(5)],
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, BookingConflictError)) == 4
    assert partner.book_calls == 1


@pytest.mark.asyncio
async def test_unknown_provider_fails_and_releases_order():
    partner = FakePartner("delhivery")
    orchestrator, store = build_orchestrator(partner)

    with pytest.raises(ValidationError):
        await orchestrator.book("ORD-8", "fedex", make_shipment())
    assert await store.get("ORD-8") is None

    result = await orchestrator.book("ORD-8", "delhivery", make_shipment())
    assert result.state == BookingState.CONFIRMED


@pytest.mark.asyncio
async def test_invalid_shipment_fails_without_provider_call():
    partner = FakePartner("delhivery")
    orchestrator, store = build_orchestrator(partner)

    with pytest.raises(ValidationError):
        await orchestrator.book("ORD-9", "delhivery", make_shipment(origin_pincode="12"))
    with pytest.raises(ValidationError):
        await orchestrator.book("ORD-9", "delhivery", make_shipment(consignee=None))

    assert partner.book_calls == 0
    assert await store.get("ORD-9") is None


@pytest.mark.asyncio
async def test_track_resolves_provider_from_ledger():
    partner = FakePartner("delhivery")
    orchestrator, _ = build_orchestrator(partner)
    booking = await orchestrator.book("ORD-10", "delhivery", make_shipment())

    snapshot = await orchestrator.track(booking.awb_or_tracking_id)

    assert snapshot.provider_name == "delhivery"
    assert snapshot.status == ShipmentStatus.IN_TRANSIT
    assert partner.track_calls == 1


@pytest.mark.asyncio
async def test_manual_reference_is_tracked_without_provider_call():
    partner = FakePartner("delhivery", book_error=gateway_error("delhivery"))
    orchestrator, _ = build_orchestrator(partner)
    booking = await orchestrator.book("ORD-11", "delhivery", make_shipment())

    snapshot = await orchestrator.track(booking.awb_or_tracking_id)
    cancellation = await orchestrator.cancel(booking.awb_or_tracking_id)

    assert snapshot.courier_status == BookingType.MANUAL_REQUIRED.value
    assert not cancellation.cancelled
    assert partner.track_calls == 0
    assert partner.cancel_calls == 0


@pytest.mark.asyncio
async def test_track_unknown_id_needs_provider():
    partner = FakePartner("delhivery")
    orchestrator, _ = build_orchestrator(partner)

    with pytest.raises(ValidationError):
        await orchestrator.track("UNKNOWN-AWB")

    snapshot = await orchestrator.track("UNKNOWN-AWB", "delhivery")
    assert snapshot.tracking_id == "UNKNOWN-AWB"


@pytest.mark.asyncio
async def test_cancel_calls_provider():
    partner = FakePartner("delhivery")
    orchestrator, _ = build_orchestrator(partner)
    booking = await orchestrator.book("ORD-12", "delhivery", make_shipment())

    result = await orchestrator.cancel(booking.awb_or_tracking_id)

    assert result.cancelled
    assert partner.cancel_calls == 1


@pytest.mark.asyncio
async def test_unserviceable_route_fails_without_booking_call():
    partner = FakePartner("delhivery", serviceable=False)
    orchestrator, store = build_orchestrator(partner)

    with pytest.raises(ServiceabilityError):
        await orchestrator.book("ORD-13", "delhivery", make_shipment())

    assert partner.book_calls == 0
    assert await store.get("ORD-13") is None

    partner.serviceable = True
    result = await orchestrator.book("ORD-13", "delhivery", make_shipment())
    assert result.state == BookingState.CONFIRMED


@pytest.mark.asyncio
async def test_cod_shipment_needs_cod_at_destination():
    partner = FakePartner("delhivery", cod_available=False)
    orchestrator, _ = build_orchestrator(partner)
    shipment = make_shipment(payment_mode=PaymentMode.COD, cod_amount=500)

    with pytest.raises(ServiceabilityError):
        await orchestrator.book("ORD-14", "delhivery", shipment)

    assert partner.book_calls == 0


@pytest.mark.asyncio
async def test_serviceability_lookup_failure_degrades_when_not_optimistic():
    partner = FakePartner("delhivery", serviceability_error=gateway_error("delhivery"))
    orchestrator, _ = build_orchestrator(partner, optimistic=False)

    result = await orchestrator.book("ORD-15", "delhivery", make_shipment())

    assert result.booking_type == BookingType.MANUAL_REQUIRED
    assert "serviceability" in result.manual_booking_instructions[0]
    assert partner.book_calls == 0


@pytest.mark.asyncio
async def test_serviceability_lookup_failure_books_when_optimistic():
    partner = FakePartner("delhivery", serviceability_error=gateway_error("delhivery"))
    orchestrator, _ = build_orchestrator(partner, optimistic=True)

    result = await orchestrator.book("ORD-16", "delhivery", make_shipment())

    assert result.booking_type == BookingType.API_AUTOMATED
    assert partner.book_calls == 1


@pytest.mark.asyncio
async def test_cancelled_booking_is_marked_failed_and_keeps_order_claimed():
    partner = FakePartner("delhivery", book_delay=1.0)
    orchestrator, store = build_orchestrator(partner)

    task = asyncio.ensure_future(orchestrator.book("ORD-17", "delhivery", make_shipment()))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    entry = await store.get("ORD-17")
    assert entry.state == BookingState.FAILED
    assert "CancelledError" in entry.raw_provider_error

    with pytest.raises(BookingConflictError):
        await orchestrator.book("ORD-17", "delhivery", make_shipment())
    assert partner.book_calls == 1


class BrokenRecordStore(InMemoryBookingStore):
    async def record(self, result):
        raise RuntimeError("ledger unavailable")


@pytest.mark.asyncio
async def test_ledger_write_failure_marks_order_failed():
    partner = FakePartner("delhivery")
    orchestrator, store = build_orchestrator(partner, store=BrokenRecordStore())

    with pytest.raises(RuntimeError):
        await orchestrator.book("ORD-18", "delhivery", make_shipment())

    entry = await store.get("ORD-18")
    assert entry.state == BookingState.FAILED
    assert "ledger unavailable" in entry.raw_provider_error
