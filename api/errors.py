"""
Error kinds surfaced by the HTTP layer.

Handlers raise ``BridgeError`` with a short fixed message; the exception
handler turns it into a plain-text response.  Upstream error detail stays in
the log.
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UPSTREAM_FAILURE = "upstream_failure"
    INTERNAL_FAILURE = "internal_failure"

    @property
    def status_code(self) -> int:
        return _STATUS[self]


_STATUS = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UPSTREAM_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class BridgeError(Exception):
    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BridgeError)
    async def bridge_error_handler(request: Request, exc: BridgeError):
        logger.info(
            "%s %s → %d (%s)",
            request.method,
            request.url.path,
            exc.kind.status_code,
            exc.kind.value,
        )
        return PlainTextResponse(exc.message, status_code=exc.kind.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return PlainTextResponse("Malformed request", status_code=status.HTTP_400_BAD_REQUEST)
