import http
from fastapi import APIRouter, Depends, Request

from logger import logger
from limiter import limiter
from settings import RATE_LIMIT

# schema
from schema.base import GenericResponseModel
from modules.rates.rates_schema import RateCalculatorParamsModel

# utils
from utils.exceptions import EngineError
from utils.response_handler import build_api_response

# services
from components.shipping_engine import ShippingEngine, get_engine
from .rates_service import RatesService


rates_router = APIRouter(tags=["rates"])


@rates_router.post(
    "/rates",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
@limiter.limit(RATE_LIMIT)
async def rate_calculation(
    request: Request,
    rate_params: RateCalculatorParamsModel,
    engine: ShippingEngine = Depends(get_engine),
):
    try:
        response: GenericResponseModel = await RatesService.rate_calculation(
            engine.aggregator, rate_params, engine.enabled_providers
        )
        return build_api_response(response)

    except EngineError:
        raise

    except Exception as e:
        logger.error(msg="Unhandled error in rate calculation: {}".format(e))
        return build_api_response(
            GenericResponseModel(
                status_code=http.HTTPStatus.INTERNAL_SERVER_ERROR,
                data=str(e),
                message="An error occurred while calculating rates.",
            )
        )
