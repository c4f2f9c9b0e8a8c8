from typing import Optional

from logger import logger

# schema
from schema.base import ServiceMode, ShipmentStatus
from modules.rates.rates_schema import RateQuote
from modules.serviceability.serviceability_schema import ServiceabilityResult
from modules.shipment.shipment_schema import (
    BookingResult,
    BookingType,
    CancellationResult,
    ContactAddress,
    ShipmentRequest,
    TrackingEvent,
    TrackingSnapshot,
)

# data
from .status_mapping import status_mapping
from .non_serviceable_pincodes import non_serviceable_pincodes

from shipping_partner.base import ShippingPartner

# utils
from utils.datetime import now_utc, parse_datetime
from utils.exceptions import AuthenticationError, ProviderAPIError, ValidationError
from utils.string import clean_text, clean_text_alphanumeric

# tokens are good for an hour
TOKEN_TTL_SECONDS = 3600


def _address_block(contact: ContactAddress, pincode: str) -> dict:
    return {
        "address": [
            {
                "country": "Ind",
                "countryType": "ISO2",
                "name": clean_text(contact.name),
                "addressLine": clean_text_alphanumeric(contact.address),
                "city": clean_text(contact.city),
                "stateCountry": clean_text(contact.state),
                "landmark": "",
                "pincode": pincode,
                "type": "Primary",
            }
        ],
        "contactDetails": [
            {
                "emailid": contact.email or "",
                "type": "Primary",
                "contactNumber": contact.phone,
                "virtualNumber": "",
            }
        ],
    }


class Xpressbees(ShippingPartner):

    name = "xpressbees"
    display_name = "Xpressbees"

    Generate_Url = "https://userauthapis.xbees.in/api/auth/generateToken"
    create_order_url = "https://global-api.xbees.in/global/v1/serviceRequest"
    cancellation_order_url = "https://clientshipupdatesapi.xbees.in/forwardcancellation"
    track_order_url = "https://apishipmenttracking.xbees.in/GetShipmentAuditLog"

    async def fetch_token(self):
        for key in ("username", "password", "secretkey"):
            if not self.credentials.get(key):
                raise AuthenticationError("Xpressbees %s is not configured" % key, self.name)

        response_data = await self._request(
            "POST",
            self.Generate_Url,
            json={
                "username": self.credentials["username"],
                "password": self.credentials["password"],
                "secretkey": self.credentials["secretkey"],
            },
            headers={"Content-Type": "application/json"},
        )

        if "error" in response_data or not response_data.get("token"):
            raise AuthenticationError(
                "Error: {} (code: {})".format(
                    response_data.get("error", "no token"), response_data.get("code")
                ),
                self.name,
                raw_response=response_data,
            )

        return response_data["token"], TOKEN_TTL_SECONDS

    async def _headers(self):
        token = await self.authenticate()
        return {"token": token, "Content-Type": "application/json"}

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        # xpressbees publishes exclusions only, every other pincode is served
        serviceable = pincode not in non_serviceable_pincodes
        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=serviceable,
            cod_available=serviceable,
            pickup_available=serviceable,
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

        is_air = chosen_quote is not None and chosen_quote.service_mode == ServiceMode.AIR
        collectable = float(shipment_request.cod_amount) if shipment_request.is_cod else 0

        body = {
            "clientDetails": {
                "clientId": self.credentials.get("client_id", ""),
                "clientName": self.credentials.get("client_name", ""),
            },
            "serviceDetails": {
                "serviceName": "Forward",
                "serviceMode": "AIR" if is_air else "SURFACE",
                "serviceVertical": "Ecom",
                "serviceType": "SD",
            },
            "shipmentDetails": {
                "orderType": "COD" if shipment_request.is_cod else "PRE",
                "packageQuantity": {"value": 1, "unit": "Pck"},
                "totalWeight": {
                    "value": round(float(shipment_request.actual_weight_kg), 3),
                    "unit": "kg",
                },
                "dimensions": {
                    "length": float(shipment_request.dimensions.length),
                    "width": float(shipment_request.dimensions.width),
                    "height": float(shipment_request.dimensions.height),
                    "unit": "cm",
                },
                "orderDetails": [
                    {
                        "orderNumber": order_id,
                        "awbNumber": "",
                        "collectableAmount": {"unit": "INR", "value": collectable},
                        "declaredValue": {
                            "unit": "INR",
                            "value": float(shipment_request.declared_value),
                        },
                        "productDescription": clean_text_alphanumeric(
                            shipment_request.product_description
                        ),
                    }
                ],
            },
            "shippingDetails": {
                "dropDetails": _address_block(
                    consignee, shipment_request.destination_pincode
                ),
                "pickupDetails": _address_block(pickup, shipment_request.origin_pincode),
                "RTODetails": _address_block(pickup, shipment_request.origin_pincode),
            },
        }

        response_data = await self._request(
            "POST", self.create_order_url, json=body, headers=await self._headers()
        )

        # If order creation failed at Xpressbees
        if response_data.get("code") != 100 or not response_data.get("data"):
            raise ProviderAPIError(
                "Xpressbees booking failed: {}".format(response_data.get("message")),
                self.name,
                raw_response=response_data,
            )

        awb_number = response_data["data"][0]["AWBNo"]
        logger.info(msg="Xpressbees booked order %s with AWB %s" % (order_id, awb_number))

        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id=awb_number,
            tracking_url=self.tracking_url(awb_number),
            booking_type=BookingType.API_AUTOMATED,
            status=ShipmentStatus.BOOKED,
            booked_at=now_utc(),
        )

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        headers = await self._headers()
        headers["versionnumber"] = "v1"

        response_data = await self._request(
            "POST", self.track_order_url, json={"AWBNumber": tracking_id}, headers=headers
        )

        # If tracking failed
        if response_data.get("ReturnCode") != 100:
            raise ProviderAPIError(
                "Xpressbees tracking failed: {}".format(response_data.get("ReturnMessage")),
                self.name,
                raw_response=response_data,
            )

        activities = response_data.get("ShipmentLogDetails") or []

        events = [
            TrackingEvent(
                status=self.map_status(status_mapping, activity.get("ShipmentStatus")),
                courier_status=activity.get("ShipmentStatus"),
                description=activity.get("Remarks") or activity.get("ShipmentStatusDescription"),
                location=activity.get("City") or activity.get("Location"),
                timestamp=parse_datetime(activity.get("ShipmentStatusDateTime")),
            )
            for activity in activities
        ]

        # newest log first
        courier_status = activities[0].get("ShipmentStatus") if activities else None

        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=tracking_id,
            status=self.map_status(status_mapping, courier_status),
            courier_status=courier_status,
            events=events,
            fetched_at=now_utc(),
        )

    async def cancel(self, tracking_id: str) -> CancellationResult:
        response_data = await self._request(
            "POST",
            self.cancellation_order_url,
            json={"ShippingID": tracking_id, "CancellationReason": "Cancel Order"},
            headers=await self._headers(),
        )

        cancelled = response_data.get("ReturnCode") == 100

        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=cancelled,
            message=(
                "order cancelled successfully"
                if cancelled
                else response_data.get("ReturnMessage", "Could not cancel shipment")
            ),
        )

    def tracking_url(self, tracking_id: str) -> str:
        return "https://www.xpressbees.com/shipment/tracking?awbNo=%s" % tracking_id
