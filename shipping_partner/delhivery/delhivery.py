import json
from typing import Optional

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
from modules.zones.zone_resolver import SpecialZoneMatch, ZoneTable

# utils
from utils.datetime import now_utc, parse_datetime
from utils.exceptions import AuthenticationError, ProviderAPIError, ValidationError
from utils.string import clean_text, clean_text_alphanumeric


# delhivery bills the special zone on the destination alone
DELHIVERY_ZONE_TABLE = ZoneTable(special_match=SpecialZoneMatch.DESTINATION)


class Delhivery(ShippingPartner):

    name = "delhivery"
    display_name = "Delhivery"
    weight_multiplier = 1000
    zone_table = DELHIVERY_ZONE_TABLE

    # API URL'S
    create_order_url = "https://track.delhivery.com/api/cmu/create.json"

    track_order_url = "https://track.delhivery.com/api/v1/packages/json/"

    cancel_order_url = "https://track.delhivery.com/api/p/edit"

    serviceability_url = "https://track.delhivery.com/c/api/pin-codes/json/"

    async def fetch_token(self):
        # static API key, never expires
        token = self.credentials.get("token")
        if not token:
            raise AuthenticationError("Delhivery API token is not configured", self.name)
        return token, None

    async def _headers(self):
        token = await self.authenticate()
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": "Token " + token,
        }

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        response_data = await self._request(
            "GET",
            self.serviceability_url,
            params={"filter_codes": pincode},
            headers=await self._headers(),
            retries=self.retry_count,
        )

        delivery_codes = response_data.get("delivery_codes") or []
        postal_code = next(
            (
                code.get("postal_code", {})
                for code in delivery_codes
                if str(code.get("postal_code", {}).get("pin")) == str(pincode)
            ),
            None,
        )

        # an empty list means the pincode is not on delhivery's network
        if postal_code is None:
            return ServiceabilityResult(
                provider_name=self.name, pincode=pincode, serviceable=False
            )

        prepaid = postal_code.get("pre_paid") == "Y"
        cod = postal_code.get("cod") == "Y"

        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=prepaid or cod,
            cod_available=cod,
            pickup_available=postal_code.get("pickup") == "Y",
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

        make_data_string = {
            "shipments": [
                {
                    "name": clean_text(consignee.name),
                    "add": clean_text_alphanumeric(consignee.address),
                    "pin": shipment_request.destination_pincode,
                    "city": clean_text(consignee.city),
                    "state": clean_text(consignee.state),
                    "country": "India",
                    "phone": consignee.phone,
                    "order": order_id,
                    "payment_mode": "COD" if shipment_request.is_cod else "Pre-paid",
                    "products_desc": clean_text_alphanumeric(
                        shipment_request.product_description
                    ),
                    "hsn_code": "",
                    "cod_amount": (
                        float(shipment_request.cod_amount) if shipment_request.is_cod else 0
                    ),
                    "total_amount": float(shipment_request.declared_value),
                    "quantity": 1,
                    "shipment_length": float(shipment_request.dimensions.length),
                    "shipment_width": float(shipment_request.dimensions.width),
                    "shipment_height": float(shipment_request.dimensions.height),
                    "weight": self.to_payload_weight(shipment_request.actual_weight_kg),
                    "shipping_mode": (
                        "express"
                        if chosen_quote is not None and chosen_quote.service_mode.value == "Air"
                        else "surface"
                    ),
                    "address_type": "",
                }
            ],
            "pickup_location": {
                "name": clean_text(pickup.name),
                "add": clean_text_alphanumeric(pickup.address),
                "city": clean_text(pickup.city),
                "pin_code": shipment_request.origin_pincode,
                "country": "India",
                "phone": pickup.phone,
            },
        }

        # delhivery takes the json inside a form style body
        body = "format=json&data={}".format(json.dumps(make_data_string))

        response_data = await self._request(
            "POST", self.create_order_url, content=body, headers=await self._headers()
        )

        packages = response_data.get("packages") or []
        package = packages[0] if packages else {}

        if package.get("status") != "Success" or not package.get("waybill"):
            remarks = package.get("remarks") or [response_data.get("rmk", "Booking rejected")]
            raise ProviderAPIError(
                "Delhivery booking failed: {}".format(remarks[0] if remarks else ""),
                self.name,
                raw_response=response_data,
            )

        waybill = package["waybill"]
        logger.info(msg="Delhivery booked order %s with waybill %s" % (order_id, waybill))

        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id=waybill,
            tracking_url=self.tracking_url(waybill),
            booking_type=BookingType.API_AUTOMATED,
            status=ShipmentStatus.BOOKED,
            booked_at=now_utc(),
        )

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        response_data = await self._request(
            "GET",
            self.track_order_url,
            params={"waybill": tracking_id, "ref_ids": ""},
            headers=await self._headers(),
        )

        # If tracking failed, delhivery answers 200 with an Error key
        if "Error" in response_data:
            raise ProviderAPIError(
                "Delhivery tracking failed: {}".format(response_data["Error"]),
                self.name,
                raw_response=response_data,
            )

        tracking_data = response_data.get("ShipmentData") or []
        if not tracking_data:
            raise ProviderAPIError(
                "No tracking data for %s" % tracking_id, self.name, raw_response=response_data
            )

        shipment = tracking_data[0]["Shipment"]
        current = shipment.get("Status", {})

        events = []
        for activity in shipment.get("Scans") or []:
            scan = activity.get("ScanDetail", {})
            events.append(
                TrackingEvent(
                    status=self.map_status(
                        status_mapping, scan.get("ScanType"), scan.get("Scan")
                    ),
                    courier_status=scan.get("Scan"),
                    description=scan.get("Instructions"),
                    location=scan.get("ScannedLocation"),
                    timestamp=parse_datetime(scan.get("ScanDateTime") or scan.get("StatusDateTime")),
                )
            )

        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=shipment.get("AWB", tracking_id),
            status=self.map_status(
                status_mapping, current.get("StatusType"), current.get("Status")
            ),
            courier_status=current.get("Status"),
            events=events,
            expected_delivery=parse_datetime(shipment.get("ExpectedDeliveryDate")),
            fetched_at=now_utc(),
        )

    async def cancel(self, tracking_id: str) -> CancellationResult:
        body = json.dumps({"waybill": tracking_id, "cancellation": True})

        logger.info(msg="Delhivery cancel_shipment api payload %s" % body)

        response_data = await self._request(
            "POST", self.cancel_order_url, content=body, headers=await self._headers()
        )

        cancelled = response_data.get("status") not in (False, "Failure")

        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=cancelled,
            message=response_data.get("remark")
            or ("order cancelled successfully" if cancelled else "Failed to cancel shipment"),
        )

    def tracking_url(self, tracking_id: str) -> str:
        return "https://www.delhivery.com/track/package/%s" % tracking_id
