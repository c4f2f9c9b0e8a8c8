import http
from typing import Optional

from fastapi import APIRouter, Depends

from logger import logger

# schema
from schema.base import GenericResponseModel
from modules.shipment.shipment_schema import BookShipmentRequestModel

# utils
from utils.exceptions import EngineError
from utils.response_handler import build_api_response

# services
from components.shipping_engine import ShippingEngine, get_engine
from .shipment_service import ShipmentService


shipment_router = APIRouter(tags=["shipments"])


def _internal_error(message: str, e: Exception):
    logger.error(msg="{}: {}".format(message, e))
    return build_api_response(
        GenericResponseModel(
            status_code=http.HTTPStatus.INTERNAL_SERVER_ERROR,
            data=str(e),
            message=message,
        )
    )


# book with the chosen courier, degrades to a manual booking on courier failure
@shipment_router.post(
    "/book",
    status_code=http.HTTPStatus.CREATED,
    response_model=GenericResponseModel,
)
async def book_shipment(
    book_params: BookShipmentRequestModel,
    engine: ShippingEngine = Depends(get_engine),
):
    try:
        response: GenericResponseModel = await ShipmentService.book_shipment(
            engine.orchestrator, book_params
        )
        return build_api_response(response)

    except EngineError:
        raise

    except Exception as e:
        return _internal_error("An error occurred while booking the shipment.", e)


@shipment_router.get(
    "/track/{tracking_id}",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
async def track_shipment(
    tracking_id: str,
    provider: Optional[str] = None,
    engine: ShippingEngine = Depends(get_engine),
):
    try:
        response: GenericResponseModel = await ShipmentService.track_shipment(
            engine.orchestrator, tracking_id, provider
        )
        return build_api_response(response)

    except EngineError:
        raise

    except Exception as e:
        return _internal_error("An error occurred while tracking the shipment.", e)


@shipment_router.post(
    "/cancel/{tracking_id}",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
async def cancel_shipment(
    tracking_id: str,
    provider: Optional[str] = None,
    engine: ShippingEngine = Depends(get_engine),
):
    try:
        response: GenericResponseModel = await ShipmentService.cancel_shipment(
            engine.orchestrator, tracking_id, provider
        )
        return build_api_response(response)

    except EngineError:
        raise

    except Exception as e:
        return _internal_error("An error occurred while cancelling the shipment.", e)
