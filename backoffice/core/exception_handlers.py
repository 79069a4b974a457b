import logging
import traceback
from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from backoffice.core.exceptions import BackofficeError, LedgerError, NotFoundError, ValidationError
from backoffice.schemas.response import _rid

log = logging.getLogger("backoffice.errors")


def _error_body(error: dict) -> dict:
    return {
        "success": False,
        "error": error,
        "request_id": _rid(),
    }


def status_for(exc: BackofficeError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, LedgerError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# ----------- Exception Handlers (called by FastAPI) -----------

def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    body = _error_body({"code": "http_error", "message": exc.detail})
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))


def backoffice_exception_handler(request: Request, exc: BackofficeError):
    """Domain errors that escaped a router."""
    return JSONResponse(status_code=status_for(exc), content=jsonable_encoder(_error_body(exc.to_dict())))


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    body = _error_body({
        "code": "validation_error",
        "message": "Invalid input data",
        "details": exc.errors(),
    })
    return JSONResponse(status_code=422, content=jsonable_encoder(body))


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.error(f"Unhandled exception on path: {request.url.path}\n{traceback.format_exc()}")
    body = _error_body({"code": "server_error", "message": "Internal Server Error"})
    return JSONResponse(status_code=500, content=body)


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(BackofficeError, backoffice_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app
