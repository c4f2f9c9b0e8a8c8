from fastapi import APIRouter, Depends

from context_manager.context import build_request_context

# routers
from modules.rates.rates_controller import rates_router
from modules.shipment.shipment_controller import shipment_router
from modules.serviceability.serviceability_controller import serviceability_router
from modules.rate_card.rate_card_controller import rate_card_router


# create a common master router for all the routes in the service
CommonRouter = APIRouter(
    prefix="/api/v1",
    dependencies=[Depends(build_request_context)],
)


# add all the routes to the master router
CommonRouter.include_router(rates_router)
CommonRouter.include_router(shipment_router)
CommonRouter.include_router(serviceability_router)
CommonRouter.include_router(rate_card_router)
