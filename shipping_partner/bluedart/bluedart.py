import asyncio
from datetime import datetime
from typing import Optional

import jwt

from logger import logger

# models
from database import SessionLocal
from models import Pincode_Serviceability

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
from .status_mapping import scan_type_defaults, status_mapping

from shipping_partner.base import ShippingPartner

# utils
from utils.datetime import now_utc, parse_datetime
from utils.exceptions import AuthenticationError, ProviderAPIError, ValidationError
from utils.string import clean_text, clean_text_alphanumeric

# used when the JWT carries no readable exp claim
DEFAULT_TOKEN_TTL_SECONDS = 12 * 3600


class Bluedart(ShippingPartner):

    name = "bluedart"
    display_name = "Blue Dart"

    token_url = "https://apigateway.bluedart.com/in/transportation/token/v1/login"
    create_order_url = (
        "https://apigateway.bluedart.com/in/transportation/waybill/v1/GenerateWayBill"
    )
    cancel_order_url = (
        "https://apigateway.bluedart.com/in/transportation/waybill/v1/CancelWaybill"
    )
    track_order_url = (
        "https://apigateway.bluedart.com/in/transportation/tracking/v1/shipment"
    )

    def __init__(self, *args, session_factory=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.session_factory = session_factory or SessionLocal

    async def fetch_token(self):
        for key in ("client_id", "client_secret"):
            if not self.credentials.get(key):
                raise AuthenticationError("Bluedart %s is not configured" % key, self.name)

        headers = {
            "Content-Type": "application/json",
            "ClientID": self.credentials["client_id"],
            "clientSecret": self.credentials["client_secret"],
        }
        response_data = await self._request("GET", self.token_url, headers=headers)

        token = response_data.get("JWTToken")
        if token is None:
            raise AuthenticationError(
                response_data.get("title", "Bluedart did not return a token"),
                self.name,
                raw_response=response_data,
            )

        return token, self._token_ttl(token)

    @staticmethod
    def _token_ttl(token: str) -> float:
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return DEFAULT_TOKEN_TTL_SECONDS

        expires = claims.get("exp")
        if not expires:
            return DEFAULT_TOKEN_TTL_SECONDS
        return max(expires - now_utc().timestamp(), 0)

    async def _headers(self):
        token = await self.authenticate()
        return {"Content-Type": "application/json", "JWTToken": token}

    def _profile(self):
        return {
            "LoginID": self.credentials.get("login_id", ""),
            "LicenceKey": self.credentials.get("licence_key", ""),
            "Api_type": "S",
        }

    def _lookup_pincode(self, pincode: str):
        db = self.session_factory()
        try:
            return (
                db.query(Pincode_Serviceability)
                .filter(Pincode_Serviceability.pincode == pincode)
                .first()
            )
        finally:
            db.close()

    async def check_serviceability(self, pincode: str) -> ServiceabilityResult:
        # bluedart has no pincode api, the dataset is maintained locally
        loop = asyncio.get_running_loop()
        row = await loop.run_in_executor(None, self._lookup_pincode, pincode)

        if row is None:
            return ServiceabilityResult(
                provider_name=self.name, pincode=pincode, serviceable=False
            )

        return ServiceabilityResult(
            provider_name=self.name,
            pincode=pincode,
            serviceable=bool(row.bluedart_lm_prepaid or row.bluedart_lm_cod),
            cod_available=bool(row.bluedart_lm_cod),
            pickup_available=bool(row.bluedart_fm),
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

        consignee_address = clean_text_alphanumeric(consignee.address)
        pickup_address = clean_text_alphanumeric(pickup.address)

        body = {
            "Request": {
                "Consignee": {
                    "ConsigneeAddress1": consignee_address,
                    "ConsigneeFullAddress": consignee_address,
                    "ConsigneeMobile": consignee.phone,
                    "ConsigneeName": clean_text(consignee.name),
                    "ConsigneePincode": shipment_request.destination_pincode,
                    "ConsigneeEmailID": consignee.email or "",
                },
                "Returnadds": {
                    "ReturnAddress1": pickup_address,
                    "ReturnContact": clean_text(pickup.name),
                    "ReturnMobile": pickup.phone,
                    "ReturnPincode": shipment_request.origin_pincode,
                    "ReturnEmailID": pickup.email or "",
                },
                "Services": {
                    "ActualWeight": round(float(shipment_request.actual_weight_kg), 3),
                    "CollectableAmount": (
                        str(shipment_request.cod_amount) if shipment_request.is_cod else "0"
                    ),
                    "CreditReferenceNo": order_id,
                    "DeclaredValue": str(shipment_request.declared_value),
                    "Dimensions": [
                        {
                            "Breadth": float(shipment_request.dimensions.width),
                            "Count": 1,
                            "Height": float(shipment_request.dimensions.height),
                            "Length": float(shipment_request.dimensions.length),
                        }
                    ],
                    "PDFOutputNotRequired": True,
                    "PackType": "L",
                    "PickupDate": "/Date({})/".format(int(datetime.now().timestamp() * 1000)),
                    "PickupTime": "1400",
                    "PieceCount": 1,
                    "RegisterPickup": True,
                    "ProductCode": "A",
                    "ProductType": 1,
                    "SubProductCode": "C" if shipment_request.is_cod else "P",
                    "itemdtl": [
                        {
                            "ItemName": clean_text_alphanumeric(
                                shipment_request.product_description
                            )
                            or "General Goods",
                            "ItemValue": str(shipment_request.declared_value),
                            "Itemquantity": "1",
                        }
                    ],
                },
                "Shipper": {
                    "CustomerAddress1": pickup_address,
                    "CustomerCode": self.credentials.get("customer_code", ""),
                    "CustomerMobile": pickup.phone,
                    "CustomerName": clean_text(pickup.name),
                    "CustomerPincode": shipment_request.origin_pincode,
                    "CustomerEmailID": pickup.email or "",
                    "IsToPayCustomer": False,
                },
            },
            "Profile": self._profile(),
        }

        response_data = await self._request(
            "POST", self.create_order_url, json=body, headers=await self._headers()
        )

        data = response_data.get("GenerateWayBillResult") or {}
        awb = data.get("AWBNo")

        if data.get("IsError") or not awb:
            statuses = data.get("Status") or [{}]
            raise ProviderAPIError(
                "Bluedart booking failed: {}".format(statuses[0].get("StatusInformation")),
                self.name,
                raw_response=response_data,
            )

        logger.info(msg="Bluedart booked order %s with AWB %s" % (order_id, awb))

        return BookingResult(
            order_id=order_id,
            provider_name=self.name,
            awb_or_tracking_id=awb,
            tracking_url=self.tracking_url(awb),
            booking_type=BookingType.API_AUTOMATED,
            status=ShipmentStatus.BOOKED,
            booked_at=now_utc(),
        )

    @staticmethod
    def _scan_status(scan_detail: dict) -> ShipmentStatus:
        scan_type = scan_detail.get("ScanType")
        key = "{}-{}".format(
            str(scan_detail.get("ScanCode", "")).strip(),
            str(scan_detail.get("ScanGroupType", "")).strip(),
        )
        status = status_mapping.get(scan_type, {}).get(key)
        return status or scan_type_defaults.get(scan_type, ShipmentStatus.UNKNOWN)

    async def track(self, tracking_id: str) -> TrackingSnapshot:
        params = {
            "handler": "tnt",
            "loginid": self.credentials.get("login_id", ""),
            "numbers": tracking_id,
            "format": "json",
            "lickey": self.credentials.get("licence_key", ""),
            "scan": 1,
            "action": "custawbquery",
            "verno": 1,
            "awb": "awb",
        }
        response_data = await self._request(
            "GET", self.track_order_url, params=params, headers=await self._headers()
        )

        tracking_data = response_data.get("ShipmentData") or {}
        if not tracking_data or tracking_data.get("Error"):
            raise ProviderAPIError(
                "Bluedart tracking failed: {}".format(tracking_data.get("Error", "no data")),
                self.name,
                raw_response=response_data,
            )

        shipment = tracking_data.get("Shipment") or {}
        shipment = shipment[0] if isinstance(shipment, list) and shipment else shipment

        scans = [scan.get("ScanDetail", {}) for scan in shipment.get("Scans") or []]

        events = [
            TrackingEvent(
                status=self._scan_status(scan),
                courier_status=scan.get("Scan"),
                description=scan.get("Scan"),
                location=scan.get("ScannedLocation"),
                timestamp=parse_datetime(
                    "{} {}".format(
                        str(scan.get("ScanDate", "")).strip(),
                        str(scan.get("ScanTime") or "00:00").strip(),
                    )
                ),
            )
            for scan in scans
        ]

        # latest scan first
        latest = scans[0] if scans else {}

        return TrackingSnapshot(
            provider_name=self.name,
            tracking_id=tracking_id,
            status=self._scan_status(latest) if latest else ShipmentStatus.UNKNOWN,
            courier_status=latest.get("Scan"),
            events=events,
            expected_delivery=parse_datetime(shipment.get("ExpectedDelivery")),
            fetched_at=now_utc(),
        )

    async def cancel(self, tracking_id: str) -> CancellationResult:
        body = {"Request": {"AWBNo": tracking_id}, "Profile": self._profile()}

        response_data = await self._request(
            "POST", self.cancel_order_url, json=body, headers=await self._headers()
        )

        data = response_data.get("CancelWaybillResult")
        cancelled = data is not None and not data.get("IsError")

        return CancellationResult(
            provider_name=self.name,
            tracking_id=tracking_id,
            cancelled=cancelled,
            message=(
                "Shipment cancelled successfully"
                if cancelled
                else "Failed to cancel shipment, please try again"
            ),
        )

    def tracking_url(self, tracking_id: str) -> str:
        return "https://www.bluedart.com/tracking/%s" % tracking_id
