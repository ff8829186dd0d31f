import logging

import jwt
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound

from vocavision.resilience import CircuitOpenError

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 500, **extra):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.extra = extra


def _log(request: Request, exc: Exception):
    logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)


async def app_error_handler(request: Request, exc: AppError):
    _log(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "status": exc.status_code, **exc.extra},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    _log(request, exc)
    return JSONResponse(status_code=409, content={"error": "A record with this value already exists"})


async def not_found_handler(request: Request, exc: NoResultFound):
    _log(request, exc)
    return JSONResponse(status_code=404, content={"error": "Record not found"})


async def token_error_handler(request: Request, exc: jwt.InvalidTokenError):
    _log(request, exc)
    if isinstance(exc, jwt.ExpiredSignatureError):
        return JSONResponse(status_code=401, content={"error": "Token expired", "message": str(exc)})
    return JSONResponse(status_code=401, content={"error": "Invalid token", "message": str(exc)})


async def circuit_open_handler(request: Request, exc: CircuitOpenError):
    _log(request, exc)
    return JSONResponse(
        status_code=503,
        content={"error": str(exc), "retryIn": round(exc.retry_in)},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc), "name": type(exc).__name__},
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(NoResultFound, not_found_handler)
    app.add_exception_handler(jwt.InvalidTokenError, token_error_handler)
    app.add_exception_handler(CircuitOpenError, circuit_open_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
