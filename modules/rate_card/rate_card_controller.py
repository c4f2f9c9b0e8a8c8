import http
from fastapi import APIRouter, Depends

from logger import logger

# schema
from schema.base import GenericResponseModel
from modules.rate_card.rate_card_schema import RateCardResponseModel

# utils
from utils.exceptions import EngineError
from utils.response_handler import build_api_response

# services
from components.shipping_engine import ShippingEngine, get_engine


rate_card_router = APIRouter(prefix="/rate-card", tags=["rate card"])


@rate_card_router.get(
    "",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
async def get_rate_card(engine: ShippingEngine = Depends(get_engine)):
    cards = [
        RateCardResponseModel.model_validate(card.model_dump())
        for card in engine.rate_cards.all_cards()
    ]
    return build_api_response(
        GenericResponseModel(
            status_code=http.HTTPStatus.OK,
            status=True,
            message="Rate cards fetched successfully",
            data=cards,
        )
    )


@rate_card_router.post(
    "/reload",
    status_code=http.HTTPStatus.OK,
    response_model=GenericResponseModel,
)
async def reload_rate_card(engine: ShippingEngine = Depends(get_engine)):
    try:
        count = engine.rate_cards.reload()
        return build_api_response(
            GenericResponseModel(
                status_code=http.HTTPStatus.OK,
                status=True,
                message="Rate cards reloaded",
                data={"count": count, "providers": engine.rate_cards.providers()},
            )
        )

    except EngineError:
        raise

    except Exception as e:
        # the previous cards stay active
        logger.error(msg="Rate card reload failed: {}".format(e))
        return build_api_response(
            GenericResponseModel(
                status_code=http.HTTPStatus.INTERNAL_SERVER_ERROR,
                data=str(e),
                message="An error occurred while reloading rate cards.",
            )
        )
