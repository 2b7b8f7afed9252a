# backend/utils/errors.py
"""Store error taxonomy and the FastAPI handlers that render it.

Every failure leaves the API as ``{"status": "error", "message": ...}``.
Services raise these exceptions; routes never build error responses by hand.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(StoreError):
    """A referenced product, order or category does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStockError(StoreError):
    """Requested quantity exceeds what is on hand."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, product_id: int, available: int):
        super().__init__(message)
        self.product_id = product_id
        self.available = available


class TransactionError(StoreError):
    """The database transaction was aborted; nothing was committed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = True


class AuthorizationError(StoreError):
    """The acting user lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN


def _error_body(message: str, **extra) -> dict:
    body = {"status": "error", "message": message}
    body.update(extra)
    return body


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        extra = {}
        if isinstance(exc, InsufficientStockError):
            extra = {"productId": exc.product_id, "available": exc.available}
        elif isinstance(exc, TransactionError):
            extra = {"retryable": True}
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, **extra))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    # Body/query validation is reported as a plain 400 like every other input error
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(_first_validation_message(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal Server Error"),
        )
