from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi.responses import JSONResponse

from logger import logger

limiter = Limiter(key_func=get_remote_address)


def rate_limit_handler(request, exc: RateLimitExceeded):
    logger.warning(msg="Rate limit hit on %s: %s" % (request.url.path, exc.detail))
    return JSONResponse(
        status_code=429,
        content={"data": {}, "message": "Too many requests. Slow down!", "status": False},
    )
