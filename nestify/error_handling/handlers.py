"""
Exception handlers translating application errors into JSON responses.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import NestifyError

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "An error occurred, please try again"


def error_body(code: str, message: str, details=None) -> dict:
    """Build the uniform error envelope."""
    body = {"success": False, "error": {"code": code, "message": message}}
    if details:
        body["error"]["details"] = details
    return body


async def handle_nestify_error(request: Request, exc: NestifyError) -> JSONResponse:
    if exc.status_code >= 500:
        # Store failures stay opaque to the caller
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        message = SERVER_ERROR_MESSAGE
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, message))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", [])[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body("VALIDATION_ERROR", "Invalid data", details),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_body("SERVER_ERROR", SERVER_ERROR_MESSAGE))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error translation layer to the application."""
    app.add_exception_handler(NestifyError, handle_nestify_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
