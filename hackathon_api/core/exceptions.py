"""
Errores de dominio y handlers globales para respuestas de error consistentes.

Toda falla visible para el usuario sale como `{"success": false, "error": <mensaje>}`
(más `request_id` si existe), sin trazas.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """Base de los errores de dominio; cada subclase fija su status HTTP."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "No token provided"


class InvalidCredential(AppError):
    status_code = 401
    default_message = "Invalid token"


class SubjectNotFound(AppError):
    status_code = 401
    default_message = "User not found"


class InvalidSignature(AppError):
    status_code = 401
    default_message = "Invalid QStash signature"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class RateLimited(AppError):
    status_code = 429
    default_message = "Too many attempts, try again later"


class StoreUnavailable(AppError):
    status_code = 500
    default_message = "Data store unavailable"


class DispatchError(AppError):
    status_code = 500
    default_message = "Failed to schedule task"


class FeatureDisabled(AppError):
    status_code = 503
    default_message = "Feature is currently disabled"


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def error_body(request: Request, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("hackathon.errors")

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(request, exc.message, **exc.extra))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, str(exc.detail or "HTTP error")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Validation error"
        if errors:
            first = errors[0]
            loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
        return JSONResponse(status_code=400, content=error_body(request, message))

    @app.exception_handler(RedisError)
    async def _store_handler(request: Request, exc: RedisError):
        log.exception("Store error request_id=%s", _req_id(request))
        return JSONResponse(status_code=500, content=error_body(request, StoreUnavailable.default_message))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=error_body(request, "Internal server error"))
