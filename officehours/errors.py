"""
Error translation between the domain layer and HTTP.

Domain exceptions become ``{"detail": {"message", "code", "details"}}``
bodies with the exception's status code.
"""

import logging
from typing import NoReturn

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Unhandled domain error on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})
