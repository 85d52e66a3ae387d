"""Service layer encapsulating business logic for API routers."""

from .errors import (
    NotFoundError,
    ReferenceInUseError,
    ServiceDeskError,
    StorageUnavailable,
    UniqueConstraintViolation,
    ValidationError,
)
from .metrics import MetricsService, TicketMetrics, TicketSnapshot, compute_metrics
from .reference_data import ReferenceDataService
from .reports import ReportService, report_filename
from .tickets import TicketService

__all__ = [
    "NotFoundError",
    "ReferenceInUseError",
    "ServiceDeskError",
    "StorageUnavailable",
    "UniqueConstraintViolation",
    "ValidationError",
    "MetricsService",
    "TicketMetrics",
    "TicketSnapshot",
    "compute_metrics",
    "ReferenceDataService",
    "ReportService",
    "report_filename",
    "TicketService",
]
