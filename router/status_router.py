import asyncio
import http
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from logger import logger
from database.db import check_connection

# services
from components.shipping_engine import ShippingEngine, get_engine

StatusRouter = APIRouter(tags=["health_checks"])


# normal status check
@StatusRouter.get("/status", status_code=http.HTTPStatus.OK)
async def status_check():
    return JSONResponse(status_code=http.HTTPStatus.OK, content={"status": "OK"})


# deep check with db connection and the loaded engine
@StatusRouter.get("/deepstatus", status_code=http.HTTPStatus.OK)
async def deep_status_check(engine: ShippingEngine = Depends(get_engine)):
    loop = asyncio.get_running_loop()
    try:
        is_db_ok = await loop.run_in_executor(None, check_connection)
    except SQLAlchemyError as e:
        logger.error(msg="Deep status db check failed: {}".format(e))
        is_db_ok = False

    if not is_db_ok:
        return JSONResponse(
            status_code=http.HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": "db not connected"},
        )

    return JSONResponse(
        status_code=http.HTTPStatus.OK,
        content={
            "db": is_db_ok,
            "providers": engine.enabled_providers,
            "rate_card_providers": engine.rate_cards.providers(),
        },
    )
