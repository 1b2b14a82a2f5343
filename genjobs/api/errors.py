"""Map job service errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from genjobs.jobs.errors import (
    AuthError,
    NotFoundOrNotCancelableError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ValidationError: 400,
    AuthError: 401,
    NotFoundOrNotCancelableError: 404,
    StoreError: 503,
}


def _make_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_type, _make_handler(status_code))
