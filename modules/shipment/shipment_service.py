import http
from typing import Dict, Optional

from logger import logger
from settings import MANUAL_TRACKING_BASE_URL, SUPPORT_CONTACT

# schema
from schema.base import GenericResponseModel, ShipmentStatus
from modules.rates.rates_schema import RateQuote
from modules.shipment.shipment_schema import (
    BookingLedgerEntry,
    BookingResult,
    BookingState,
    BookingType,
    CancellationResult,
    ShipmentRequest,
    TrackingSnapshot,
)

# services
from modules.serviceability.serviceability_service import ServiceabilityChecker
from modules.shipment.booking_store import BookingStore
from modules.zones.zone_resolver import resolve_zone

# utils
from utils.datetime import now_utc
from utils.exceptions import (
    EngineError,
    ProviderError,
    ServiceabilityError,
    ValidationError,
)
from utils.result import Degraded, Failed, Result, Success
from utils.string import generate_reference
from utils.weight_calc import chargeable_weight

MANUAL_REFERENCE_PREFIX = "MB"


class BookingOrchestrator:
    """
    Books a shipment with one courier.

    Requested -> Authenticating -> Booking -> Confirmed | Degraded | Failed

    The route is checked for serviceability before authenticating. A courier
    failure (serviceability lookup, auth, API error, timeout) degrades the
    booking to a manual one with a temporary reference instead of raising.
    Invalid input, unknown couriers and unserviceable routes fail the booking
    and release the order id. An order id is reserved in the ledger before any
    courier is called, so a second booking for the same order raises
    BookingConflictError.
    """

    def __init__(
        self,
        adapters: Dict,
        store: BookingStore,
        checker: Optional[ServiceabilityChecker] = None,
        manual_tracking_base_url: str = MANUAL_TRACKING_BASE_URL,
        support_contact: str = SUPPORT_CONTACT,
    ):
        self.adapters = adapters
        self.store = store
        self.checker = checker or ServiceabilityChecker(adapters)
        self.manual_tracking_base_url = manual_tracking_base_url
        self.support_contact = support_contact

    # ------------------------------------------------------------------
    # booking steps
    # ------------------------------------------------------------------

    def _validate(self, provider_name: str, shipment_request: ShipmentRequest) -> Result:
        adapter = self.adapters.get(provider_name)
        if adapter is None:
            return Failed(
                ValidationError("Unknown provider: %s" % provider_name, provider_name),
                step="validate",
            )

        try:
            resolve_zone(
                shipment_request.origin_pincode,
                shipment_request.destination_pincode,
                adapter.zone_table,
            )
            chargeable_weight(shipment_request.actual_weight_kg, shipment_request.dimensions)
        except ValidationError as e:
            return Failed(e, step="validate")

        if shipment_request.pickup is None or shipment_request.consignee is None:
            return Failed(
                ValidationError("Pickup and consignee details are required to book"),
                step="validate",
            )

        return Success(adapter)

    async def _check_route(self, adapter, shipment_request: ShipmentRequest) -> Result:
        try:
            await self.checker.ensure_route(adapter.name, shipment_request)
        except ServiceabilityError as e:
            return Failed(e, step="validate")
        except ProviderError as e:
            # only reached with optimistic serviceability off
            return Failed(e, step="serviceability")

        return Success(adapter)

    async def _authenticate(self, order_id: str, adapter) -> Result:
        logger.info(msg="Order %s: %s" % (order_id, BookingState.AUTHENTICATING.value))
        try:
            return Success(await adapter.authenticate())
        except ProviderError as e:
            return Failed(e, step="authenticate")

    async def _book(
        self,
        order_id: str,
        adapter,
        shipment_request: ShipmentRequest,
        chosen_quote: Optional[RateQuote],
    ) -> Result:
        logger.info(msg="Order %s: %s" % (order_id, BookingState.BOOKING.value))
        try:
            result = await adapter.book(shipment_request, chosen_quote, order_id)
        except ProviderError as e:
            return Failed(e, step="book")
        except EngineError as e:
            return Failed(e, step="validate")
        except Exception as e:
            # the courier may have been reached, so this is not a clean failure
            logger.error(msg="Order {}: unexpected booking error: {}".format(order_id, e))
            return Failed(
                ProviderError(str(e), adapter.name, raw_response=repr(e)), step="book"
            )

        return Success(result.model_copy(update={"state": BookingState.CONFIRMED}))

    def _degrade(self, order_id: str, adapter, failed: Failed) -> Degraded:
        error = failed.error
        reference = generate_reference(MANUAL_REFERENCE_PREFIX)
        display_name = adapter.display_name or adapter.name

        raw_error = getattr(error, "raw_response", None)
        raw_error = str(raw_error) if raw_error is not None else str(error)

        instructions = [
            "Automatic booking with %s failed during %s: %s"
            % (display_name, failed.step, getattr(error, "message", str(error))),
            "Book order %s manually on the %s portal." % (order_id, display_name),
            "Send the AWB to %s quoting reference %s." % (self.support_contact, reference),
            "Reference %s can be tracked until the AWB is linked." % reference,
        ]

        result = BookingResult(
            order_id=order_id,
            provider_name=adapter.name,
            awb_or_tracking_id=reference,
            tracking_url=self.manual_tracking_base_url + reference,
            booking_type=BookingType.MANUAL_REQUIRED,
            status=ShipmentStatus.BOOKED,
            state=BookingState.DEGRADED,
            raw_provider_error=raw_error,
            manual_booking_instructions=instructions,
            booked_at=now_utc(),
        )
        return Degraded(result, reason=str(error))

    async def book(
        self,
        order_id: str,
        provider_name: str,
        shipment_request: ShipmentRequest,
        chosen_quote: Optional[RateQuote] = None,
    ) -> BookingResult:
        if not order_id or not order_id.strip():
            raise ValidationError("Order id is required")

        await self.store.reserve(order_id, provider_name)
        logger.info(
            msg="Order %s: %s with %s" % (order_id, BookingState.REQUESTED.value, provider_name)
        )

        try:
            return await self._run_booking(
                order_id, provider_name, shipment_request, chosen_quote
            )

        except EngineError:
            # failed steps have already released the order id
            raise

        except BaseException as e:
            await self._mark_interrupted(order_id, e)
            raise

    async def _run_booking(
        self,
        order_id: str,
        provider_name: str,
        shipment_request: ShipmentRequest,
        chosen_quote: Optional[RateQuote],
    ) -> BookingResult:
        step = self._validate(provider_name, shipment_request)
        if isinstance(step, Failed):
            return await self._fail(order_id, step)
        adapter = step.value

        step = await self._check_route(adapter, shipment_request)
        if isinstance(step, Success):
            step = await self._authenticate(order_id, adapter)
        if isinstance(step, Success):
            step = await self._book(order_id, adapter, shipment_request, chosen_quote)

        if isinstance(step, Failed):
            if step.step == "validate":
                return await self._fail(order_id, step)
            step = self._degrade(order_id, adapter, step)
            logger.warning(
                msg="Order {}: {} with {}, manual booking {}: {}".format(
                    order_id,
                    BookingState.DEGRADED.value,
                    provider_name,
                    step.value.awb_or_tracking_id,
                    step.reason,
                )
            )
        else:
            logger.info(
                msg="Order %s: %s with AWB %s"
                % (order_id, BookingState.CONFIRMED.value, step.value.awb_or_tracking_id)
            )

        await self.store.record(step.value)
        return step.value

    async def _fail(self, order_id: str, step: Failed):
        logger.warning(
            msg="Order {}: {} at {}: {}".format(
                order_id, BookingState.FAILED.value, step.step, step.error
            )
        )
        await self.store.release(order_id)
        raise step.error

    async def _mark_interrupted(self, order_id: str, error: BaseException):
        # the courier may already hold the booking, so the order id stays claimed
        logger.error(
            msg="Order {}: booking interrupted, needs manual reconciliation: {!r}".format(
                order_id, error
            )
        )
        try:
            await self.store.mark_failed(order_id, repr(error))
        except Exception as e:
            logger.error(
                msg="Order {}: could not mark ledger entry failed: {}".format(order_id, e)
            )

    # ------------------------------------------------------------------
    # tracking and cancellation
    # ------------------------------------------------------------------

    async def _resolve(self, tracking_id: str, provider_name: Optional[str]):
        entry: Optional[BookingLedgerEntry] = await self.store.find_by_tracking_id(tracking_id)

        if provider_name is None:
            if entry is None:
                raise ValidationError(
                    "Provider is required for tracking id %s not booked here" % tracking_id
                )
            provider_name = entry.provider_name

        adapter = self.adapters.get(provider_name)
        if adapter is None:
            raise ValidationError("Unknown provider: %s" % provider_name, provider_name)

        return adapter, entry

    @staticmethod
    def _is_manual(entry: Optional[BookingLedgerEntry]) -> bool:
        return entry is not None and entry.booking_type == BookingType.MANUAL_REQUIRED

    async def track(self, tracking_id: str, provider_name: Optional[str] = None) -> TrackingSnapshot:
        adapter, entry = await self._resolve(tracking_id, provider_name)

        if self._is_manual(entry):
            # no AWB exists at the courier yet
            return TrackingSnapshot(
                provider_name=adapter.name,
                tracking_id=tracking_id,
                status=ShipmentStatus.BOOKED,
                courier_status=BookingType.MANUAL_REQUIRED.value,
                fetched_at=now_utc(),
            )

        return await adapter.track(tracking_id)

    async def cancel(
        self, tracking_id: str, provider_name: Optional[str] = None
    ) -> CancellationResult:
        adapter, entry = await self._resolve(tracking_id, provider_name)

        if self._is_manual(entry):
            return CancellationResult(
                provider_name=adapter.name,
                tracking_id=tracking_id,
                cancelled=False,
                message="Manual booking, contact %s to cancel" % self.support_contact,
            )

        result = await adapter.cancel(tracking_id)
        logger.info(
            msg="Cancellation of %s with %s: %s" % (tracking_id, adapter.name, result.cancelled)
        )
        return result


class ShipmentService:
    @staticmethod
    async def book_shipment(orchestrator: BookingOrchestrator, book_params) -> GenericResponseModel:
        result = await orchestrator.book(
            book_params.order_id,
            book_params.provider_name,
            book_params.shipment,
            book_params.chosen_quote,
        )

        degraded = result.booking_type == BookingType.MANUAL_REQUIRED
        return GenericResponseModel(
            status_code=http.HTTPStatus.ACCEPTED if degraded else http.HTTPStatus.CREATED,
            status=True,
            message=(
                "Automatic booking failed, manual booking required"
                if degraded
                else "Shipment booked successfully"
            ),
            data=result,
        )

    @staticmethod
    async def track_shipment(
        orchestrator: BookingOrchestrator, tracking_id: str, provider_name: Optional[str] = None
    ) -> GenericResponseModel:
        snapshot = await orchestrator.track(tracking_id, provider_name)
        return GenericResponseModel(
            status_code=http.HTTPStatus.OK,
            status=True,
            message="Tracking fetched successfully",
            data=snapshot,
        )

    @staticmethod
    async def cancel_shipment(
        orchestrator: BookingOrchestrator, tracking_id: str, provider_name: Optional[str] = None
    ) -> GenericResponseModel:
        result = await orchestrator.cancel(tracking_id, provider_name)
        return GenericResponseModel(
            status_code=http.HTTPStatus.OK if result.cancelled else http.HTTPStatus.BAD_REQUEST,
            status=result.cancelled,
            # couriers often send no message with the outcome
            message=result.message
            or ("Shipment cancelled" if result.cancelled else "Cancellation failed"),
            data=result,
        )
