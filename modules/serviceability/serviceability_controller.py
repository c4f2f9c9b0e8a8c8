import http
from fastapi import APIRouter, Depends

from logger import logger

# schema
from schema.base import GenericResponseModel
from modules.serviceability.serviceability_schema import ServiceabilityParamsModel

# utils
from utils.exceptions import EngineError
from utils.response_handler import build_api_response

# services
from components.shipping_engine import ShippingEngine, get_engine


serviceability_router = APIRouter(tags=["serviceability"])


@serviceability_router.get(
    "/courier/serviceability",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
async def check_serviceability(
    serviceability_params: ServiceabilityParamsModel = Depends(),
    engine: ShippingEngine = Depends(get_engine),
):
    try:
        result = await engine.checker.is_serviceable(
            serviceability_params.provider, serviceability_params.pincode
        )
        return build_api_response(
            GenericResponseModel(
                status_code=http.HTTPStatus.OK,
                status=True,
                message="Serviceable" if result.serviceable else "Not serviceable",
                data=result,
            )
        )

    except EngineError:
        raise

    except Exception as e:
        logger.error(msg="Unhandled error in serviceability check: {}".format(e))
        return build_api_response(
            GenericResponseModel(
                status_code=http.HTTPStatus.INTERNAL_SERVER_ERROR,
                data=str(e),
                message="An error occurred while checking serviceability.",
            )
        )
