from typing import Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from logger import logger
from schema.base import GenericResponseModel


# the envelope goes out as {status, message, data}, status_code becomes the http status
def build_api_response(
    generic_response: GenericResponseModel, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    response_json = jsonable_encoder(generic_response, exclude={"status_code"})

    logger.info(
        msg="build_api_response: %s %s"
        % (generic_response.status_code, generic_response.message)
    )
    return JSONResponse(
        status_code=generic_response.status_code,
        content=response_json,
        headers=headers,
    )
