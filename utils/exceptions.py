"""
Engine error taxonomy.

Every error carries the HTTP status the api layer answers with. Provider-local
errors (ProviderError and AuthenticationError) are absorbed by the rate
aggregator and the booking orchestrator; the rest always reach the caller.
"""

import http
from typing import Optional


class EngineError(Exception):
    http_status = http.HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, provider_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name

    def __str__(self):
        if self.provider_name:
            return "[%s] %s" % (self.provider_name, self.message)
        return self.message


# malformed pincode, weight or dimensions, never retried
class ValidationError(EngineError):
    http_status = http.HTTPStatus.UNPROCESSABLE_ENTITY


# no rate card, band or zone entry for the shipment
class RateNotFoundError(EngineError):
    http_status = http.HTTPStatus.NOT_FOUND


class ServiceabilityError(EngineError):
    http_status = http.HTTPStatus.UNPROCESSABLE_ENTITY


class BookingConflictError(EngineError):
    http_status = http.HTTPStatus.CONFLICT

    def __init__(self, order_id: str, message: Optional[str] = None):
        super().__init__(message or "Order %s is already booked" % order_id)
        self.order_id = order_id


class ProviderError(EngineError):
    """Failure of a single courier provider call."""

    http_status = http.HTTPStatus.BAD_GATEWAY

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        status_code: Optional[int] = None,
        transient: bool = False,
        raw_response=None,
    ):
        super().__init__(message, provider_name)
        self.status_code = status_code
        self.transient = transient
        self.raw_response = raw_response


class ProviderAPIError(ProviderError):
    pass


class ProviderTimeoutError(ProviderError):
    http_status = http.HTTPStatus.GATEWAY_TIMEOUT

    def __init__(self, message: str, provider_name: Optional[str] = None):
        super().__init__(message, provider_name, transient=True)


class AuthenticationError(ProviderError):
    pass
