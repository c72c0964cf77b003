"""Global exception handlers.

Every failure reaching the HTTP layer becomes a ``400`` with a plain
text body. Rejected input is logged at INFO; anything else logs its
stack trace at CRITICAL.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from reelchat.core.errors import ReelchatError, ValidationFailed

logger = logging.getLogger(__name__)

BAD_REQUEST = 400
INVALID_REQUEST_MESSAGE = "Invalid request"
UNEXPECTED_ERROR_MESSAGE = "Unexpected error"


def _bad_request(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=BAD_REQUEST)


def install_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on ``app`` (before it starts)."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> PlainTextResponse:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        logger.info("Rejected %s %s: %s", request.method, request.url.path, details)
        return _bad_request(f"{INVALID_REQUEST_MESSAGE}: {details}" if details else INVALID_REQUEST_MESSAGE)

    @app.exception_handler(ValidationFailed)
    async def handle_input_rejected(
        request: Request, exc: ValidationFailed
    ) -> PlainTextResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return _bad_request(str(exc) or INVALID_REQUEST_MESSAGE)

    @app.exception_handler(ReelchatError)
    async def handle_reelchat_error(
        request: Request, exc: ReelchatError
    ) -> PlainTextResponse:
        logger.critical(
            "%s %s aborted: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _bad_request(str(exc) or type(exc).__name__)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(
        request: Request, exc: Exception
    ) -> PlainTextResponse:
        logger.critical(
            "%s %s failed unexpectedly",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _bad_request(UNEXPECTED_ERROR_MESSAGE)
