"""
GreenPantry API — Domain errors and their HTTP mapping

  validation failure → 400 (malformed request bodies included)
  not authenticated  → 401
  not authorized     → 403
  not found          → 404
  anything else      → 500 (generic body, traceback logged server-side only)
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be processed."
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."


class ItemUnavailable(ValidationFailed):
    def __init__(self, menu_item_id: str):
        self.menu_item_id = menu_item_id
        super().__init__(f"Menu item {menu_item_id} is not available")


class InvalidStatusTransition(ValidationFailed):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' to '{requested}'.")


class DuplicateEmail(ValidationFailed):
    default_detail = "User with this email already exists"


class ProviderDisabled(ValidationFailed):
    def __init__(self, provider: str):
        super().__init__(f"Payment provider {provider} is not enabled")


class PaymentGatewayError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed."


class NotAuthenticated(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated."
    headers = {"WWW-Authenticate": "Bearer"}


class NotAuthorized(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed to access this resource."


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
