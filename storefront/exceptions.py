import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class OrderServiceError(Exception):
    """Base error of the order service, carrying the HTTP status it maps to."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OrderServiceError):
    status_code = 400
    default_message = "Invalid order payload"


class NotFound(OrderServiceError):
    status_code = 404
    default_message = "Order not found"


class AlreadyPaid(OrderServiceError):
    status_code = 409
    default_message = "Order already paid"


class PaymentVerificationError(OrderServiceError):
    status_code = 400
    default_message = "Payment verification failed"


class PaymentGatewayError(OrderServiceError):
    status_code = 502
    default_message = "Payment provider unavailable"


class PersistenceError(OrderServiceError):
    status_code = 500
    default_message = "Order store unavailable"


def format_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {error.get('msg')}")
    return "Invalid order payload: " + "; ".join(parts)


async def order_service_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    message = format_validation_errors(exc.errors())
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"message": message})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(OrderServiceError, order_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
