"""
Translation of domain errors raised by the engines into HTTP responses
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cricbook.engine.errors import (
    CricbookError, NotFoundError, PermissionDenied, ConflictError,
    DomainValidationError, PersistenceError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    DomainValidationError: status.HTTP_400_BAD_REQUEST,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: CricbookError) -> int:
    for error_cls, code in STATUS_CODES.items():
        if isinstance(error, error_cls):
            return code
    return status.HTTP_400_BAD_REQUEST


async def cricbook_error_handler(request: Request, exc: CricbookError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(CricbookError, cricbook_error_handler)
