import json
import xml.etree.ElementTree as ET
from typing import List, Optional

from logger import logger

# schema
from schema.base import ShipmentStatus
from modules.rates.rates_schema import RateQuote
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import (
    BookingResult,
    BookingType,
    CancellationResult,
    ShipmentRequest,
    TrackingEvent,
    TrackingSnapshot,
)

# data
from .status_mapping import status_mapping

from shipping_partner.base import ShippingPartner

# utils
from utils.datetime import now_utc, parse_datetime
from utils.exceptions import AuthenticationError, ProviderAPIError, ValidationError
from utils.string import clean_text, clean_text_alphanumeric
from utils.weight_calc import volumetric_weight


def parse_scan_stages(xml_data: str) -> List[dict]:
    """Scan stages from a track_me XML document, latest first."""
    try:
        root = ET.fromstring(xml_data)
    except ET.ParseError as e:
        raise ProviderAPIError(
            "Unreadable tracking document: {}".format(e), "ecom-express", raw_response=xml_data
        )

    scan_stages = []
    for scan in root.findall(".//object[@model='scan_stages']"):
        scan_stages.append(
            {field.get("name"): (field.text or "").strip() for field in scan.findall("field")}
        )
    return scan_stages


class Ecom(ShippingPartner):

    name = "ecom-express"
    display_name = "Ecom Express"

    pincode_url = "https://api.ecomexpress.in/apiv2/pincode/"
    fetch_awb_url = "https://api.ecomexpress.in/apiv2/fetch_awb/"
    manifest_url = "https://api.ecomexpress.in/apiv2/manifest_awb/"
    cancel_url = "https://api.ecomexpress.in/apiv2/cancel_awb/"
    track_url = "https://plapi.ecomexpress.in/track_me/api/mawbd/"

    async def fetch_token(self):
        # ecom signs every call with username and password, nothing expires
        for key in ("username", "password"):
            if not self.credentials.get(key):
                raise AuthenticationError("Ecom %s is not configured" % key, self.name)
        return self.credentials["password"], None

    async def _form(self, **fields) -> dict:
        password = await self.authenticate()
        return {"username": self.credentials["username"], "password": password, **fields}

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        response_data = await self._request(
            "POST",
            self.pincode_url,
            data=await self._form(pincode=pincode),
            retries=self.retry_count,
        )

        rows = response_data if isinstance(response_data, list) else []
        row = next((r for r in rows if str(r.get("pincode")) == pincode), None)

        if row is None or not row.get("active", True):
            return ServiceabilityResult(
                provider_name=self.name, pincode=pincode, serviceable=False
            )

        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=True,
            cod_available=bool(row.get("cod", True)),
            pickup_available=bool(row.get("pickup", True)),
        )

    async def _generate_awb(self, is_cod: bool) -> str:
        response_data = await self._request(
            "POST",
            self.fetch_awb_url,
            data=await self._form(count=1, type="COD" if is_cod else "PPD"),
        )

        if response_data.get("success") != "yes" or not response_data.get("awb"):
            raise ProviderAPIError(
                "Ecom could not allocate an AWB: {}".format(
                    response_data.get("error", "unknown error")
                ),
                self.name,
                raw_response=response_data,
            )

        return str(response_data["awb"][0])

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

        awb = await self._generate_awb(shipment_request.is_cod)
        dimensions = shipment_request.dimensions

        body = {
            "AWB_NUMBER": awb,
            "ORDER_NUMBER": order_id,
            "PRODUCT": "COD" if shipment_request.is_cod else "PPD",
            "CONSIGNEE": clean_text(consignee.name),
            "CONSIGNEE_ADDRESS1": clean_text_alphanumeric(consignee.address),
            "CONSIGNEE_ADDRESS2": "",
            "CONSIGNEE_ADDRESS3": "",
            "DESTINATION_CITY": clean_text(consignee.city),
            "PINCODE": shipment_request.destination_pincode,
            "STATE": clean_text(consignee.state),
            "MOBILE": consignee.phone,
            "TELEPHONE": "",
            "ITEM_DESCRIPTION": clean_text(shipment_request.product_description) or "General Goods",
            "PIECES": 1,
            "COLLECTABLE_VALUE": (
                float(shipment_request.cod_amount) if shipment_request.is_cod else 0
            ),
            "DECLARED_VALUE": float(shipment_request.declared_value),
            "ACTUAL_WEIGHT": self.to_payload_weight(shipment_request.actual_weight_kg),
            "VOLUMETRIC_WEIGHT": round(volumetric_weight(dimensions), 3),
            "LENGTH": float(dimensions.length),
            "BREADTH": float(dimensions.width),
            "HEIGHT": float(dimensions.height),
            "PICKUP_NAME": clean_text(pickup.name),
            "PICKUP_ADDRESS_LINE1": clean_text_alphanumeric(pickup.address),
            "PICKUP_ADDRESS_LINE2": "",
            "PICKUP_PINCODE": shipment_request.origin_pincode,
            "PICKUP_PHONE": pickup.phone,
            "PICKUP_MOBILE": pickup.phone,
            "RETURN_NAME": clean_text(pickup.name),
            "RETURN_ADDRESS_LINE1": clean_text_alphanumeric(pickup.address),
            "RETURN_ADDRESS_LINE2": "",
            "RETURN_PINCODE": shipment_request.origin_pincode,
            "RETURN_PHONE": pickup.phone,
            "RETURN_MOBILE": pickup.phone,
            "DG_SHIPMENT": "false",
            "ADDITIONAL_INFORMATION": {
                "PICKUP_TYPE": "WH",
                "RETURN_TYPE": "WH",
                "CONSIGNEE_ADDRESS_TYPE": "GENERAL",
            },
        }

        response_data = await self._request(
            "POST",
            self.manifest_url,
            data=await self._form(json_input=json.dumps([body])),
        )

        shipments = response_data.get("shipments") or [{}]
        shipment = shipments[0]

        if shipment.get("success") is not True:
            raise ProviderAPIError(
                "Ecom booking failed: {}".format(shipment.get("reason", "unknown error")),
                self.name,
                raw_response=response_data,
            )

        awb = str(shipment.get("awb") or awb)
        logger.info(msg="Ecom manifested order %s with AWB %s" % (order_id, awb))

        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id=awb,
            tracking_url=self.tracking_url(awb),
            booking_type=BookingType.API_AUTOMATED,
            status=ShipmentStatus.BOOKED,
            booked_at=now_utc(),
        )

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        password = await self.authenticate()
        xml_data = await self._request(
            "GET",
            self.track_url,
            params={
                "username": self.credentials["username"],
                "password": password,
                "awb": tracking_id,
            },
            expect="text",
            retries=self.retry_count,
        )

        scan_stages = parse_scan_stages(xml_data)
        if not scan_stages:
            raise ProviderAPIError(
                "Ecom returned no scans for %s" % tracking_id,
                self.name,
                raw_response=xml_data,
            )

        events = [
            TrackingEvent(
                status=status_mapping.get(
                    stage.get("reason_code_number", ""), ShipmentStatus.UNKNOWN
                ),
                courier_status=stage.get("reason_code_number"),
                description=stage.get("status"),
                location=stage.get("city_name") or stage.get("location_city"),
                timestamp=parse_datetime(stage.get("updated_on")),
            )
            for stage in scan_stages
        ]

        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=tracking_id,
            status=events[0].status,
            courier_status=events[0].courier_status,
            events=events,
            fetched_at=now_utc(),
        )

    async def cancel(self, tracking_id: str) -> CancellationResult:
        response_data = await self._request(
            "POST", self.cancel_url, data=await self._form(awbs=tracking_id)
        )

        result = response_data[0] if isinstance(response_data, list) and response_data else {}
        cancelled = result.get("success") is True

        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=cancelled,
            message=(
                "Shipment cancelled successfully"
                if cancelled
                else result.get("reason", "Failed to cancel shipment, please try again")
            ),
        )

    def tracking_url(self, tracking_id: str) -> str:
        return "https://www.ecomexpress.in/tracking/?awb_field=%s" % tracking_id
