"""
app/api/errors.py

Exception handlers that keep every error response in the
``{"success": false, "error": ...}`` shape.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas.common import ErrorResponse
from app.storage import StorageError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = ErrorResponse(error=message).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=body)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(exc.status_code, message)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, problems or "Invalid request.")


async def _storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage unavailable path=%s error=%s", request.url.path, exc)
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Object storage is unavailable.")


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error path=%s error=%s", request.url.path, exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    application.add_exception_handler(RequestValidationError, _validation_exception_handler)
    application.add_exception_handler(StorageError, _storage_exception_handler)
    application.add_exception_handler(Exception, _unhandled_exception_handler)
