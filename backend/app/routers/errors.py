"""Translate service errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from ..services import (
    NotFoundError,
    ReferenceInUseError,
    ServiceDeskError,
    StorageUnavailable,
    UniqueConstraintViolation,
    ValidationError,
)

LOGGER = logging.getLogger(__name__)


def status_code_for(exc: ServiceDeskError) -> int:
    if isinstance(exc, ReferenceInUseError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, UniqueConstraintViolation):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, StorageUnavailable):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def http_error(exc: ServiceDeskError) -> HTTPException:
    return HTTPException(status_code=status_code_for(exc), detail=str(exc))


async def service_error_handler(_: Request, exc: ServiceDeskError) -> JSONResponse:
    """Answer service errors raised outside of a router's own ``try`` block."""

    return JSONResponse(status_code=status_code_for(exc), content={"detail": str(exc)})


async def storage_error_handler(_: Request, exc: Exception) -> JSONResponse:
    LOGGER.error("Database unavailable while serving request: %s", exc)
    unavailable = StorageUnavailable("The ticket database is unavailable.")
    return JSONResponse(
        status_code=status_code_for(unavailable), content={"detail": str(unavailable)}
    )


def register_error_handlers(app) -> None:
    app.add_exception_handler(ServiceDeskError, service_error_handler)
    app.add_exception_handler(OperationalError, storage_error_handler)
    app.add_exception_handler(InterfaceError, storage_error_handler)
