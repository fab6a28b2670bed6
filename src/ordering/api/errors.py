"""Translate domain exceptions into the API's error envelope.

Handlers are registered on the FastAPI app (and on the bare apps the
integration tests build), so routes never catch domain errors themselves.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ordering.errors import AccessDenied, ExternalServiceError, first_message

logger = structlog.get_logger(__name__)


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    message = exc.args[0] if exc.args and isinstance(exc.args[0], str) else "Not found"
    return _envelope(404, message)


async def _access_denied(request: Request, exc: AccessDenied) -> JSONResponse:
    return _envelope(403, exc.message)


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return _envelope(400, first_message(exc.messages))


async def _version_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("Concurrent update rejected", path=request.url.path, error=str(exc))
    return _envelope(400, "Record was modified concurrently, please retry")


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        message = "Invalid request"
    return _envelope(400, message)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


async def _external_service(request: Request, exc: ExternalServiceError) -> JSONResponse:
    logger.error("Payment processor error", path=request.url.path, error=exc.message)
    return _envelope(500, exc.message)


async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return _envelope(500, str(exc) or type(exc).__name__)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(AccessDenied, _access_denied)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ExpectedVersionError, _version_conflict)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(ExternalServiceError, _external_service)
    app.add_exception_handler(Exception, _unexpected)
