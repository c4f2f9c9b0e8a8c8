import json
import time
from urllib.parse import parse_qs

import httpx
import jwt
import pytest
from sqlalchemy.orm import sessionmaker

from database.db import build_engine, init_models
from models import Pincode_Serviceability
from modules.credentials import CredentialCache
from modules.rate_card.rate_card_service import RateCardRegistry
from modules.rates.rates_schema import QuoteSource
from modules.shipment.shipment_schema import BookingType
from modules.zones.zone_resolver import Zone
from schema.base import PaymentMode, ServiceMode, ShipmentStatus
from shipping_partner.bluedart.bluedart import DEFAULT_TOKEN_TTL_SECONDS, Bluedart
from shipping_partner.delhivery.delhivery import Delhivery
from shipping_partner.ecom.ecom import Ecom
from shipping_partner.ekart.ekart import Ekart
from shipping_partner.xpressbees.xpressbees import Xpressbees
from utils.exceptions import AuthenticationError, ProviderAPIError, ProviderTimeoutError
from tests.helpers import make_shipment


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, responder):
        self.responder = responder
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.responder(request)

    def hits(self, fragment):
        return [r for r in self.requests if fragment in str(r.url)]


def build(adapter_class, responder, credentials, **kwargs):
    recorder = Recorder(responder)
    cache = CredentialCache()
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    adapter = adapter_class(credentials, cache, RateCardRegistry(), client=client, **kwargs)
    return adapter, recorder, cache


# ----------------------------------------------------------------------
# delhivery
# ----------------------------------------------------------------------

DELHIVERY_CREDENTIALS = {"token": "dlv-key"}


@pytest.mark.asyncio
async def test_delhivery_serviceability():
    def responder(request):
        return httpx.Response(
            200,
            json={
                "delivery_codes": [
                    {"postal_code": {"pin": 110001, "pre_paid": "Y", "cod": "N", "pickup": "Y"}}
                ]
            },
        )

    adapter, recorder, _ = build(Delhivery, responder, DELHIVERY_CREDENTIALS)
    result = await adapter.check_serviceability("110001")

    assert result.serviceable
    assert not result.cod_available
    assert result.pickup_available
    assert recorder.requests[0].headers["Authorization"] == "Token dlv-key"
    assert recorder.requests[0].url.params["filter_codes"] == "110001"


@pytest.mark.asyncio
async def test_delhivery_unknown_pincode_is_not_serviceable():
    adapter, _, _ = build(
        Delhivery, lambda r: httpx.Response(200, json={"delivery_codes": []}), DELHIVERY_CREDENTIALS
    )
    assert not (await adapter.check_serviceability("999999")).serviceable


@pytest.mark.asyncio
async def test_serviceability_retries_once_on_gateway_error():
    responses = [
        httpx.Response(503, text="busy"),
        httpx.Response(200, json={"delivery_codes": []}),
    ]
    adapter, recorder, _ = build(
        Delhivery, lambda r: responses.pop(0), DELHIVERY_CREDENTIALS, retry_count=1
    )

    await adapter.check_serviceability("110001")

    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_timeout_is_translated():
    def responder(request):
        raise httpx.ReadTimeout("timed out", request=request)

    adapter, recorder, _ = build(Delhivery, responder, DELHIVERY_CREDENTIALS, retry_count=1)

    with pytest.raises(ProviderTimeoutError):
        await adapter.check_serviceability("110001")
    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_booking_is_never_retried():
    adapter, recorder, _ = build(
        Delhivery, lambda r: httpx.Response(503, text="busy"), DELHIVERY_CREDENTIALS, retry_count=3
    )

    with pytest.raises(ProviderAPIError) as excinfo:
        await adapter.book(make_shipment(), None, "ORD-1")

    assert excinfo.value.status_code == 503
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_unauthorized_response_drops_cached_token():
    adapter, _, cache = build(
        Delhivery, lambda r: httpx.Response(401, text="bad token"), DELHIVERY_CREDENTIALS
    )

    with pytest.raises(AuthenticationError):
        await adapter.track("1490812345678")
    assert cache.peek("delhivery") is None


@pytest.mark.asyncio
async def test_delhivery_book_sends_form_wrapped_json_in_grams():
    adapter, recorder, _ = build(
        Delhivery,
        lambda r: httpx.Response(
            200, json={"packages": [{"status": "Success", "waybill": "1490812345678"}]}
        ),
        DELHIVERY_CREDENTIALS,
    )

    result = await adapter.book(
        make_shipment(payment_mode=PaymentMode.COD, cod_amount=750), None, "ORD-2"
    )

    body = recorder.requests[0].content.decode()
    assert body.startswith("format=json&data=")
    shipment = json.loads(body[len("format=json&data="):])["shipments"][0]
    assert shipment["weight"] == 1500
    assert shipment["payment_mode"] == "COD"
    assert shipment["cod_amount"] == 750
    assert result.awb_or_tracking_id == "1490812345678"
    assert result.booking_type == BookingType.API_AUTOMATED


@pytest.mark.asyncio
async def test_delhivery_rejected_package_raises():
    adapter, _, _ = build(
        Delhivery,
        lambda r: httpx.Response(
            200, json={"packages": [{"status": "Fail", "remarks": ["pincode not serviceable"]}]}
        ),
        DELHIVERY_CREDENTIALS,
    )

    with pytest.raises(ProviderAPIError, match="pincode not serviceable"):
        await adapter.book(make_shipment(), None, "ORD-3")


@pytest.mark.asyncio
async def test_delhivery_track_maps_status():
    payload = {
        "ShipmentData": [
            {
                "Shipment": {
                    "AWB": "1490812345678",
                    "Status": {"Status": "In Transit", "StatusType": "UD"},
                    "Scans": [
                        {
                            "ScanDetail": {
                                "Scan": "Manifested",
                                "ScanType": "UD",
                                "ScanDateTime": "2026-10-14T10:15:00",
                                "ScannedLocation": "Mumbai_Andheri",
                            }
                        },
                        {
                            "ScanDetail": {
                                "Scan": "Teleported",
                                "ScanType": "ZZ",
                                "ScanDateTime": "2026-10-14T12:00:00",
                            }
                        },
                    ],
                }
            }
        ]
    }
    adapter, _, _ = build(Delhivery, lambda r: httpx.Response(200, json=payload), DELHIVERY_CREDENTIALS)

    snapshot = await adapter.track("1490812345678")

    assert snapshot.status == ShipmentStatus.IN_TRANSIT
    assert snapshot.events[0].status == ShipmentStatus.BOOKED
    # IST wall clock converted to UTC
    assert snapshot.events[0].timestamp.hour == 4
    assert snapshot.events[1].status == ShipmentStatus.UNKNOWN


@pytest.mark.asyncio
async def test_delhivery_quotes_from_rate_card_without_http():
    adapter, recorder, _ = build(Delhivery, lambda r: httpx.Response(500), DELHIVERY_CREDENTIALS)

    quote = await adapter.quote(make_shipment())

    assert quote.source == QuoteSource.RATE_CARD
    assert quote.total == 105
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_missing_credentials_fail_authentication():
    adapter, recorder, _ = build(Delhivery, lambda r: httpx.Response(200, json={}), {})

    with pytest.raises(AuthenticationError):
        await adapter.check_serviceability("110001")
    assert recorder.requests == []


# ----------------------------------------------------------------------
# xpressbees
# ----------------------------------------------------------------------

XPRESSBEES_CREDENTIALS = {
    "username": "xb-user",
    "password": "xb-pass",
    "secretkey": "xb-secret",
    "client_id": "CL01",
    "client_name": "Acme",
}


def xpressbees_responder(request):
    if "generateToken" in str(request.url):
        return httpx.Response(200, json={"token": "xb-token"})
    if "GetShipmentAuditLog" in str(request.url):
        return httpx.Response(
            200,
            json={
                "ReturnCode": 100,
                "ShipmentLogDetails": [
                    {"ShipmentStatus": "OFD", "ShipmentStatusDateTime": "14-10-2026 09:30:00"},
                    {"ShipmentStatus": "PUD", "ShipmentStatusDateTime": "13-10-2026 18:00:00"},
                ],
            },
        )
    if "serviceRequest" in str(request.url):
        return httpx.Response(200, json={"code": 100, "data": [{"AWBNo": "XB123"}]})
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_xpressbees_token_is_fetched_once():
    adapter, recorder, _ = build(Xpressbees, xpressbees_responder, XPRESSBEES_CREDENTIALS)

    first = await adapter.track("XB123")
    await adapter.track("XB123")

    assert len(recorder.hits("generateToken")) == 1
    assert recorder.hits("GetShipmentAuditLog")[0].headers["token"] == "xb-token"
    assert first.status == ShipmentStatus.OUT_FOR_DELIVERY
    assert first.events[1].status == ShipmentStatus.IN_TRANSIT


@pytest.mark.asyncio
async def test_xpressbees_book_uses_air_for_air_quote():
    adapter, recorder, _ = build(Xpressbees, xpressbees_responder, XPRESSBEES_CREDENTIALS)
    quote = await adapter.quote(make_shipment(service_mode=ServiceMode.AIR))

    result = await adapter.book(make_shipment(), quote, "ORD-4")

    body = json.loads(recorder.hits("serviceRequest")[0].content)
    assert body["serviceDetails"]["serviceMode"] == "AIR"
    assert body["clientDetails"]["clientId"] == "CL01"
    assert result.awb_or_tracking_id == "XB123"


@pytest.mark.asyncio
async def test_xpressbees_blocklisted_pincode():
    adapter, recorder, _ = build(Xpressbees, xpressbees_responder, XPRESSBEES_CREDENTIALS)

    assert not (await adapter.check_serviceability("133206")).serviceable
    assert (await adapter.check_serviceability("110001")).serviceable
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_xpressbees_token_error_is_authentication_error():
    adapter, _, _ = build(
        Xpressbees,
        lambda r: httpx.Response(200, json={"error": "invalid credentials", "code": 401}),
        XPRESSBEES_CREDENTIALS,
    )

    with pytest.raises(AuthenticationError):
        await adapter.authenticate()


# ----------------------------------------------------------------------
# ekart
# ----------------------------------------------------------------------

EKART_CREDENTIALS = {"client_id": "EK01", "username": "ek-user", "password": "ek-pass"}


def ekart_responder(request):
    path = request.url.path
    if path.startswith("/integrations/v2/auth/token/"):
        return httpx.Response(200, json={"access_token": "ek-token", "expires_in": 86400})
    if path == "/data/v3/serviceability":
        return httpx.Response(
            200,
            json=[
                {"serviceType": "EXPRESS", "shippingCharge": 90, "tax": 16.2, "total": 106.2, "tat": 2},
                {"serviceType": "SURFACE", "shippingCharge": 60, "tax": 10.8, "total": 70.8, "tat": 4},
            ],
        )
    if path.startswith("/api/v1/track/"):
        return httpx.Response(
            200,
            json={
                "track": {
                    "status": "Out For Delivery",
                    "details": [{"status": "Picked Up", "ctime": 1760500000000, "location": "Bhiwandi"}],
                },
                "edd": 1760600000000,
            },
        )
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_ekart_live_quote_picks_cheapest_option():
    adapter, recorder, _ = build(Ekart, ekart_responder, EKART_CREDENTIALS)

    quote = await adapter.quote(make_shipment())

    assert quote.source == QuoteSource.LIVE_API
    assert quote.total == 71
    assert quote.service_mode == ServiceMode.SURFACE
    assert quote.estimated_delivery_days == 4
    assert quote.zone == Zone.METRO_TO_METRO

    pricing = recorder.hits("/data/v3/serviceability")[0]
    assert pricing.headers["Authorization"] == "Bearer ek-token"
    assert json.loads(pricing.content)["weight"] == "1500"


@pytest.mark.asyncio
async def test_ekart_quote_honours_requested_mode():
    adapter, _, _ = build(Ekart, ekart_responder, EKART_CREDENTIALS)

    quote = await adapter.quote(make_shipment(service_mode=ServiceMode.AIR))

    assert quote.service_mode == ServiceMode.AIR
    assert quote.total == 106


@pytest.mark.asyncio
async def test_ekart_track_needs_no_token():
    adapter, recorder, _ = build(Ekart, ekart_responder, EKART_CREDENTIALS)

    snapshot = await adapter.track("EKT123")

    assert snapshot.status == ShipmentStatus.OUT_FOR_DELIVERY
    assert snapshot.events[0].status == ShipmentStatus.IN_TRANSIT
    assert snapshot.expected_delivery is not None
    assert recorder.hits("/auth/token/") == []


# ----------------------------------------------------------------------
# bluedart
# ----------------------------------------------------------------------

BLUEDART_CREDENTIALS = {
    "client_id": "BD01",
    "client_secret": "bd-secret",
    "login_id": "BOM001",
    "licence_key": "lic",
    "customer_code": "099960",
}


@pytest.fixture
def pincode_sessions():
    engine = build_engine("sqlite://")
    init_models(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)

    db = factory()
    db.add(
        Pincode_Serviceability(
            pincode="110001", bluedart_fm=True, bluedart_lm_prepaid=True, bluedart_lm_cod=False
        )
    )
    db.commit()
    db.close()

    yield factory
    engine.dispose()


def test_bluedart_token_ttl_from_jwt_expiry():
    token = jwt.encode({"exp": int(time.time()) + 7200}, "signing-key", algorithm="HS256")

    assert 7100 < Bluedart._token_ttl(token) <= 7200
    assert Bluedart._token_ttl("not-a-jwt") == DEFAULT_TOKEN_TTL_SECONDS


@pytest.mark.asyncio
async def test_bluedart_serviceability_from_local_dataset(pincode_sessions):
    adapter, recorder, _ = build(
        Bluedart,
        lambda r: httpx.Response(500),
        BLUEDART_CREDENTIALS,
        session_factory=pincode_sessions,
    )

    known = await adapter.check_serviceability("110001")
    unknown = await adapter.check_serviceability("560001")

    assert known.serviceable and known.pickup_available and not known.cod_available
    assert not unknown.serviceable
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_bluedart_book_and_waybill_error(pincode_sessions):
    token = jwt.encode({"exp": int(time.time()) + 3600}, "signing-key", algorithm="HS256")
    outcomes = [
        {"GenerateWayBillResult": {"AWBNo": "69912345678", "IsError": False}},
        {
            "GenerateWayBillResult": {
                "IsError": True,
                "Status": [{"StatusInformation": "Invalid pincode"}],
            }
        },
    ]

    def responder(request):
        if "login" in str(request.url):
            return httpx.Response(200, json={"JWTToken": token})
        return httpx.Response(200, json=outcomes.pop(0))

    adapter, recorder, _ = build(
        Bluedart, responder, BLUEDART_CREDENTIALS, session_factory=pincode_sessions
    )

    result = await adapter.book(make_shipment(), None, "ORD-5")
    assert result.awb_or_tracking_id == "69912345678"
    waybill = recorder.hits("GenerateWayBill")[0]
    assert waybill.headers["JWTToken"] == token
    assert json.loads(waybill.content)["Request"]["Services"]["CreditReferenceNo"] == "ORD-5"

    with pytest.raises(ProviderAPIError, match="Invalid pincode"):
        await adapter.book(make_shipment(), None, "ORD-6")
    assert len(recorder.hits("login")) == 1


# ----------------------------------------------------------------------
# ecom express
# ----------------------------------------------------------------------

ECOM_CREDENTIALS = {"username": "ecom-user", "password": "ecom-pass"}

ECOM_TRACKING_XML = """<?xml version="1.0" encoding="utf-8"?>
<ecomexpress-objects version="1.0">
  <object pk="1" model="awb">
    <field type="BigIntegerField" name="awb_number">301234567</field>
    <field type="CharField" name="status">In Transit</field>
    <field type="CharField" name="scans">
      <object pk="2" model="scan_stages">
        <field type="DateTimeField" name="updated_on">14 Oct, 2026, 18:40</field>
        <field type="CharField" name="status">Out for delivery</field>
        <field type="CharField" name="reason_code_number">006</field>
        <field type="CharField" name="city_name">Delhi</field>
      </object>
      <object pk="3" model="scan_stages">
        <field type="DateTimeField" name="updated_on">13 Oct, 2026, 11:05</field>
        <field type="CharField" name="status">Shipment picked up</field>
        <field type="CharField" name="reason_code_number">0011</field>
        <field type="CharField" name="city_name">Mumbai</field>
      </object>
    </field>
  </object>
</ecomexpress-objects>
"""


def ecom_responder(request):
    url = str(request.url)
    if "fetch_awb" in url:
        return httpx.Response(200, json={"success": "yes", "awb": [301234567]})
    if "manifest_awb" in url:
        return httpx.Response(
            200, json={"shipments": [{"success": True, "awb": "301234567", "order_number": "ORD-7"}]}
        )
    if "track_me" in url:
        return httpx.Response(200, text=ECOM_TRACKING_XML)
    if "cancel_awb" in url:
        return httpx.Response(200, json=[{"success": False, "reason": "Shipment already picked up"}])
    return httpx.Response(404)


@pytest.mark.asyncio
async def test_ecom_book_fetches_awb_then_manifests():
    adapter, recorder, _ = build(Ecom, ecom_responder, ECOM_CREDENTIALS)

    result = await adapter.book(make_shipment(), None, "ORD-7")

    assert result.awb_or_tracking_id == "301234567"
    form = parse_qs(recorder.hits("manifest_awb")[0].content.decode())
    assert form["username"] == ["ecom-user"]
    assert json.loads(form["json_input"][0])[0]["AWB_NUMBER"] == "301234567"


@pytest.mark.asyncio
async def test_ecom_track_parses_scan_stages():
    adapter, _, _ = build(Ecom, ecom_responder, ECOM_CREDENTIALS)

    snapshot = await adapter.track("301234567")

    assert snapshot.status == ShipmentStatus.OUT_FOR_DELIVERY
    assert [event.status for event in snapshot.events] == [
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.IN_TRANSIT,
    ]
    assert snapshot.events[1].location == "Mumbai"


@pytest.mark.asyncio
async def test_ecom_cancel_reports_refusal():
    adapter, _, _ = build(Ecom, ecom_responder, ECOM_CREDENTIALS)

    result = await adapter.cancel("301234567")

    assert not result.cancelled
    assert result.message == "Shipment already picked up"
