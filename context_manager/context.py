import uuid
from contextvars import ContextVar
from fastapi import Request
from logger import logger

# defining the context variables to store different types of required data

context_request_id: ContextVar[str] = ContextVar("request_id", default=None)


# whenever an api is hit, define the context variables for it
async def build_request_context(request: Request):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    context_request_id.set(request_id)
    logger.info(msg="REQUEST_INITIATED %s %s" % (request.method, request.url.path))


# get the same request id everywhere, None outside of an api call
def get_request_id():
    return context_request_id.get()
