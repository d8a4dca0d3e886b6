import logging
from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.exceptions import (
    IngredientNotFoundError,
    OrderNotFoundError,
    OrderStateError,
    StockAdjustmentError,
)
from app.schemas.response import ErrorBody, ErrorResponse

log = logging.getLogger("exception_handlers")


def _error(status_code: int, code: str, message, details=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# ----------- Exception Handlers (called by FastAPI) -----------

def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    return _error(exc.status_code, "http_error", exc.detail)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Invalid input data",
        details=[{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()],
    )


def order_not_found_handler(request: Request, exc: OrderNotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, "order_not_found", str(exc))


def order_state_handler(request: Request, exc: OrderStateError):
    return _error(status.HTTP_409_CONFLICT, "invalid_state_transition", str(exc))


def stock_adjustment_handler(request: Request, exc: StockAdjustmentError):
    """Missing ingredient is a 404; a refused (negative) adjustment is a 409."""
    if isinstance(exc, IngredientNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "ingredient_not_found", str(exc))
    return _error(status.HTTP_409_CONFLICT, "insufficient_stock", str(exc))


def value_error_handler(request: Request, exc: ValueError):
    return _error(status.HTTP_400_BAD_REQUEST, "bad_request", str(exc))


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}", exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error", "Internal Server Error")


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OrderNotFoundError, order_not_found_handler)
    app.add_exception_handler(OrderStateError, order_state_handler)
    app.add_exception_handler(StockAdjustmentError, stock_adjustment_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
