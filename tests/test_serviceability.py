import pytest

from modules.serviceability.serviceability_service import ServiceabilityChecker
from schema.base import PaymentMode
from utils.exceptions import ProviderAPIError, ServiceabilityError, ValidationError
from tests.helpers import FakePartner, gateway_error, make_shipment


@pytest.mark.asyncio
async def test_serviceable_pincode():
    checker = ServiceabilityChecker({"delhivery": FakePartner("delhivery")})

    result = await checker.is_serviceable("delhivery", "110001")

    assert result.serviceable
    assert not result.assumed


@pytest.mark.asyncio
async def test_provider_error_propagates_by_default():
    partner = FakePartner("delhivery", serviceability_error=gateway_error("delhivery"))
    checker = ServiceabilityChecker({"delhivery": partner}, optimistic=False)

    with pytest.raises(ProviderAPIError):
        await checker.is_serviceable("delhivery", "110001")


@pytest.mark.asyncio
async def test_optimistic_flag_assumes_serviceable():
    partner = FakePartner("delhivery", serviceability_error=gateway_error("delhivery"))
    checker = ServiceabilityChecker({"delhivery": partner}, optimistic=True)

    result = await checker.is_serviceable("delhivery", "110001")

    assert result.serviceable
    assert result.assumed
    assert result.cod_available


@pytest.mark.asyncio
async def test_unknown_provider_and_bad_pincode():
    checker = ServiceabilityChecker({"delhivery": FakePartner("delhivery")})

    with pytest.raises(ValidationError):
        await checker.is_serviceable("fedex", "110001")
    with pytest.raises(ValidationError):
        await checker.is_serviceable("delhivery", "11001")


@pytest.mark.asyncio
async def test_ensure_route_rejects_unserviceable_destination():
    checker = ServiceabilityChecker({"ekart": FakePartner("ekart", serviceable=False)})

    with pytest.raises(ServiceabilityError):
        await checker.ensure_route("ekart", make_shipment())


@pytest.mark.asyncio
async def test_ensure_route_checks_cod_for_cod_shipments():
    checker = ServiceabilityChecker({"ekart": FakePartner("ekart", cod_available=False)})

    await checker.ensure_route("ekart", make_shipment())

    with pytest.raises(ServiceabilityError):
        await checker.ensure_route(
            "ekart", make_shipment(payment_mode=PaymentMode.COD, cod_amount=500)
        )
