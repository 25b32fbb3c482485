"""Error Handlers — JSON error bodies for the stats and health routes.

Invariants:
    - AuxError -> its own http_status and to_response() body
    - Any other exception -> 500 with a fixed body; the message stays in the logs
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from aux_rounds.core.errors import AuxError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

_INTERNAL_ERROR_BODY = {
    "error": {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
        "category": ErrorCategory.INTERNAL.value,
        "severity": ErrorSeverity.CRITICAL.value,
    },
}


async def _aux_error(request: Request, exc: AuxError) -> JSONResponse:
    log = logger.warning if exc.recoverable else logger.error
    log(
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_INTERNAL_ERROR_BODY,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuxError, _aux_error)
    app.add_exception_handler(Exception, _unhandled)
