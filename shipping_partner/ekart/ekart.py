from datetime import datetime
from typing import Optional

from logger import logger

# schema
from schema.base import ServiceMode, ShipmentStatus
from modules.rates.rates_schema import QuoteSource, RateBreakdown, RateQuote
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import (
    BookingResult,
    BookingType,
    CancellationResult,
    ShipmentRequest,
    TrackingEvent,
    TrackingSnapshot,
)
from modules.zones.zone_resolver import resolve_zone

# data
from .status_mapping import status_mapping

from shipping_partner.base import ShippingPartner

# utils
from utils.datetime import from_epoch_millis, now_utc
from utils.exceptions import AuthenticationError, ProviderAPIError, ValidationError
from utils.string import clean_text, clean_text_alphanumeric, round_to_2_decimal_place
from utils.weight_calc import chargeable_weight

SERVICE_TYPES = {ServiceMode.SURFACE: "SURFACE", ServiceMode.AIR: "EXPRESS"}


def _amount(option: dict, *keys) -> float:
    for key in keys:
        if option.get(key) not in (None, ""):
            return float(option[key])
    return 0.0


class Ekart(ShippingPartner):
    """
    Ekart prices live: every quote is a call to the V3 serviceability
    endpoint, which answers with one option per service type.
    """

    name = "ekart"
    display_name = "Ekart Logistics"
    weight_multiplier = 1000

    base_url = "https://app.elite.ekartlogistics.in"
    auth_url = base_url + "/integrations/v2/auth/token/{client_id}"
    serviceability_url = base_url + "/api/v2/serviceability/{pincode}"
    pricing_url = base_url + "/data/v3/serviceability"
    create_order_url = base_url + "/api/v1/package/create"
    cancel_order_url = base_url + "/api/v1/package/cancel"
    track_order_url = base_url + "/api/v1/track/{tracking_id}"

    async def fetch_token(self):
        for key in ("client_id", "username", "password"):
            if not self.credentials.get(key):
                raise AuthenticationError("Ekart %s is not configured" % key, self.name)

        response_data = await self._request(
            "POST",
            self.auth_url.format(client_id=self.credentials["client_id"]),
            json={
                "username": self.credentials["username"],
                "password": self.credentials["password"],
            },
        )

        access_token = response_data.get("access_token")
        if not access_token:
            raise AuthenticationError(
                "Ekart did not return an access token", self.name, raw_response=response_data
            )

        return access_token, response_data.get("expires_in")

    async def _headers(self):
        token = await self.authenticate()
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": "Bearer " + token,
        }

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        response_data = await self._request(
            "GET",
            self.serviceability_url.format(pincode=pincode),
            headers=await self._headers(),
            retries=self.retry_count,
        )

        serviceable = bool(response_data.get("status"))
        details = response_data.get("details") or {}

        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=serviceable,
            cod_available=serviceable and bool(details.get("cod", True)),
            pickup_available=serviceable and bool(details.get("pickup", True)),
        )

    async def quote(self, shipment_request: ShipmentRequest) -> RateQuote:
        zone = resolve_zone(
            shipment_request.origin_pincode,
            shipment_request.destination_pincode,
            self.zone_table,
        )
        weight = chargeable_weight(
            shipment_request.actual_weight_kg, shipment_request.dimensions
        )

        payload = {
            "pickupPincode": shipment_request.origin_pincode,
            "dropPincode": shipment_request.destination_pincode,
            "length": str(shipment_request.dimensions.length),
            "height": str(shipment_request.dimensions.height),
            "width": str(shipment_request.dimensions.width),
            "weight": str(self.to_payload_weight(shipment_request.actual_weight_kg)),
            "paymentType": "COD" if shipment_request.is_cod else "Prepaid",
            "invoiceAmount": str(shipment_request.declared_value or shipment_request.cod_amount),
        }
        if shipment_request.is_cod:
            payload["codAmount"] = str(shipment_request.cod_amount)

        response_data = await self._request(
            "POST",
            self.pricing_url,
            json=payload,
            headers=await self._headers(),
            retries=self.retry_count,
        )

        if not isinstance(response_data, list) or not response_data:
            raise ProviderAPIError(
                "Ekart returned no pricing options", self.name, raw_response=response_data
            )

        options = response_data
        if shipment_request.service_mode is not None:
            wanted = SERVICE_TYPES[shipment_request.service_mode]
            options = [o for o in options if str(o.get("serviceType", "")).upper() == wanted] or options

        cheapest = min(options, key=lambda o: self._option_total(o))

        service_mode = (
            ServiceMode.AIR
            if str(cheapest.get("serviceType", "")).upper() == "EXPRESS"
            else ServiceMode.SURFACE
        )
        tat = cheapest.get("tat")

        return RateQuote(
            provider_name=self.name,
            service_mode=service_mode,
            breakdown=RateBreakdown(
                base_rate=round_to_2_decimal_place(
                    _amount(cheapest, "shippingCharge", "forwardCharge")
                ),
                cod_charge=round_to_2_decimal_place(_amount(cheapest, "codCharge")),
                fuel_surcharge=round_to_2_decimal_place(_amount(cheapest, "fuelSurcharge")),
                tax=round_to_2_decimal_place(_amount(cheapest, "tax", "gst")),
                total=float(round(self._option_total(cheapest))),
            ),
            chargeable_weight=weight,
            zone=zone,
            estimated_delivery_days=int(tat) if tat not in (None, "") else None,
            source=QuoteSource.LIVE_API,
        )

    @staticmethod
    def _option_total(option: dict) -> float:
        total = _amount(option, "total", "totalAmount")
        if total:
            return total
        return sum(
            _amount(option, key)
            for key in ("shippingCharge", "codCharge", "fuelSurcharge", "tax")
        )

    async def book(
        self,
        shipment_request: ShipmentRequest,
        chosen_quote: Optional[RateQuote],
        order_id: str,
    ) -> BookingResult:
        consignee = shipment_request.consignee
        pickup = shipment_request.pickup
        if consignee is None or pickup is None:
            raise ValidationError("Pickup and consignee details are required to book")

        amount = shipment_request.declared_value or shipment_request.cod_amount

        body = {
            "seller_name": clean_text(pickup.name),
            "seller_address": clean_text_alphanumeric(pickup.address),
            "order_number": order_id,
            "invoice_number": order_id,
            "invoice_date": datetime.now().strftime("%Y-%m-%d"),
            "consignee_name": clean_text(consignee.name),
            "products_desc": clean_text_alphanumeric(shipment_request.product_description)
            or "General Goods",
            "payment_mode": "COD" if shipment_request.is_cod else "Prepaid",
            "category_of_goods": "General",
            "total_amount": float(amount),
            "taxable_amount": float(amount),
            "commodity_value": str(amount),
            "cod_amount": float(shipment_request.cod_amount) if shipment_request.is_cod else 0,
            "quantity": 1,
            "weight": self.to_payload_weight(shipment_request.actual_weight_kg),
            "length": round(shipment_request.dimensions.length),
            "height": round(shipment_request.dimensions.height),
            "width": round(shipment_request.dimensions.width),
            "drop_location": {
                "name": clean_text(consignee.name),
                "address": clean_text_alphanumeric(consignee.address),
                "city": clean_text(consignee.city),
                "state": clean_text(consignee.state),
                "pin": shipment_request.destination_pincode,
                "phone": consignee.phone,
            },
            "pickup_location": {
                "name": clean_text(pickup.name),
                "address": clean_text_alphanumeric(pickup.address),
                "city": clean_text(pickup.city),
                "state": clean_text(pickup.state),
                "pin": shipment_request.origin_pincode,
                "phone": pickup.phone,
            },
        }

        response_data = await self._request(
            "PUT", self.create_order_url, json=body, headers=await self._headers()
        )

        if not response_data.get("status") or not response_data.get("tracking_id"):
            raise ProviderAPIError(
                "Ekart booking failed: {}".format(response_data.get("remark")),
                self.name,
                raw_response=response_data,
            )

        tracking_id = response_data["tracking_id"]
        logger.info(msg="Ekart booked order %s with tracking id %s" % (order_id, tracking_id))

        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id=tracking_id,
            tracking_url=self.tracking_url(tracking_id),
            booking_type=BookingType.API_AUTOMATED,
            status=ShipmentStatus.BOOKED,
            booked_at=now_utc(),
        )

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        # open endpoint, no token
        response_data = await self._request(
            "GET", self.track_order_url.format(tracking_id=tracking_id)
        )

        track = response_data.get("track")
        if not track:
            raise ProviderAPIError(
                "No tracking data found for %s" % tracking_id,
                self.name,
                raw_response=response_data,
            )

        events = [
            TrackingEvent(
                status=self.map_status(status_mapping, str(detail.get("status", "")).lower()),
                courier_status=detail.get("status"),
                description=detail.get("desc"),
                location=detail.get("location"),
                timestamp=from_epoch_millis(detail.get("ctime")),
            )
            for detail in track.get("details") or []
        ]

        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=tracking_id,
            status=self.map_status(status_mapping, str(track.get("status", "")).lower()),
            courier_status=track.get("status"),
            events=events,
            expected_delivery=from_epoch_millis(response_data.get("edd")),
            fetched_at=now_utc(),
        )

    async def cancel(self, tracking_id: str) -> CancellationResult:
        response_data = await self._request(
            "DELETE",
            self.cancel_order_url,
            params={"tracking_id": tracking_id},
            headers=await self._headers(),
        )

        cancelled = bool(response_data.get("status"))

        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=cancelled,
            message=response_data.get("remark")
            or ("Shipment cancelled successfully" if cancelled else "Ekart shipment cancellation failed"),
        )

    def tracking_url(self, tracking_id: str) -> str:
        return "%s/track/%s" % (self.base_url, tracking_id)
