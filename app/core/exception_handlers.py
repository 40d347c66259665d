# app/core/exception_handlers.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import InsufficientStock, StoreError, ValidationError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    body = {"success": False, "message": message, "code": code}
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.info(
        "%s %s -> %s (%s): %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
    )
    extra = {}
    if isinstance(exc, InsufficientStock):
        extra = {"requested": exc.requested, "available": exc.available}
    elif isinstance(exc, ValidationError):
        extra = {"field": exc.field}
    return _envelope(exc.status_code, exc.message, exc.code, **extra)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _envelope(exc.status_code, message, "HTTPException")


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info("%s %s -> 422: %s", request.method, request.url.path, errors)
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation failed",
        "ValidationError",
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Details stay in the server log; clients only see a generic message.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error", "ServerError"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
