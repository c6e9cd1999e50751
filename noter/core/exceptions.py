"""
Domain errors and global exception handlers for consistent API errors.

Services raise `NoterError` subclasses; the handlers below turn them (and any
other exception) into `{"message": ...}` bodies with the matching status.
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class NoterError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(NoterError):
    status_code = 422
    default_message = "Validation error"


class UnauthorizedError(NoterError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(NoterError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(NoterError):
    status_code = 404
    default_message = "Not found"


class ConflictError(NoterError):
    status_code = 409
    default_message = "Conflict"


class PayloadTooLargeError(NoterError):
    status_code = 413
    default_message = "File exceeds max size"


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def _body(request: Request, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message, **extra}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


def validation_message(errors: list[dict]) -> str:
    """Human-readable message for the first pydantic error."""
    if not errors:
        return "Validation error"
    first = errors[0]
    if first.get("type") == "missing":
        loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "form")]
        return f"Missing {loc[-1]}" if loc else "Missing credentials"
    msg = str(first.get("msg") or "Validation error")
    # pydantic prefixes messages raised from validators
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("noter.errors")

    @app.exception_handler(NoterError)
    async def _noter_handler(request: Request, exc: NoterError):
        if exc.status_code >= 500:
            log.error("Domain error request_id=%s: %s", _req_id(request), exc.message)
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.detail or "HTTP error"))

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        return JSONResponse(status_code=422, content=_body(request, validation_message(errors)))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        log.exception("Unhandled error request_id=%s", _req_id(request))
        return JSONResponse(status_code=500, content=_body(request, "Internal server error"))
