from typing import List, Dict
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from logger import logger
from utils.exceptions import EngineError, ProviderError


# format the validation errors into our desired output
def format_validation_errors(errors: List[dict]) -> Dict:
    formatted_errors = {}

    for error in errors:
        # Extract the field name and error message
        field = error["loc"][-1] if len(error["loc"]) > 1 else "Unknown"
        message = error["msg"]

        # Add to the formatted_errors dictionary
        if field in formatted_errors:
            formatted_errors[field].append(message)
        else:
            formatted_errors[field] = [message]

    # Construct the final response format
    return {
        "data": {"fields": formatted_errors},
        "message": "Validation error occurred.",
        "status": False,
    }


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.error(msg="422 on %s Errors: %s" % (request.url.path, exc.errors()))
    return JSONResponse(status_code=422, content=format_validation_errors(exc.errors()))


# every engine error renders the same envelope, with the status its class carries
async def handle_engine_error(request: Request, exc: EngineError) -> JSONResponse:
    data = {}
    if exc.provider_name:
        data["provider_name"] = exc.provider_name
    if isinstance(exc, ProviderError) and exc.status_code:
        data["provider_status_code"] = exc.status_code

    logger.warning(
        msg="%s on %s: %s" % (type(exc).__name__, request.url.path, exc)
    )
    return JSONResponse(
        status_code=int(exc.http_status),
        content={"data": data, "message": exc.message, "status": False},
    )


# Custom internal server error handler
async def custom_http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    if exc.status_code == 500:
        logger.error(f"Internal server error: {exc.detail}")
        return JSONResponse(
            status_code=500,
            content={
                "data": {},
                "message": "An internal server error occurred. Please try again later.",
                "status": False,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"data": {}, "message": exc.detail, "status": False},
    )
