"""Typed failures raised by the service layer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

LOGGER = logging.getLogger(__name__)

_FOREIGN_KEY_MARKERS = ("foreign key", "foreignkeyviolation", "violates foreign key")
_NOT_NULL_MARKERS = ("not null", "notnullviolation")


class ServiceDeskError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(ServiceDeskError):
    """A required field is empty or a reference points to a missing row."""


class ReferenceInUseError(ValidationError):
    """Reference data cannot be removed while tickets still point to it."""


class NotFoundError(ServiceDeskError):
    """The targeted ticket, status or comment does not exist."""


class UniqueConstraintViolation(ServiceDeskError):
    """A ticket number or reference data name is already taken."""


class StorageUnavailable(ServiceDeskError):
    """The database could not be reached."""


def _classify_integrity_error(exc: IntegrityError, message: str) -> ServiceDeskError:
    detail = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    if any(marker in detail for marker in _FOREIGN_KEY_MARKERS):
        return ValidationError("Referenced record does not exist or is still in use.")
    if any(marker in detail for marker in _NOT_NULL_MARKERS):
        return ValidationError("A required field is missing.")
    return UniqueConstraintViolation(message)


@contextmanager
def storage_errors(db: Session, *, conflict_message: str = "Record already exists.") -> Iterator[None]:
    """Translate SQLAlchemy failures raised inside the block into service errors.

    The session is rolled back before the typed error propagates so it can be
    reused by the caller.
    """

    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        raise _classify_integrity_error(exc, conflict_message) from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        LOGGER.error("Database unavailable: %s", exc)
        raise StorageUnavailable("The ticket database is unavailable.") from exc
