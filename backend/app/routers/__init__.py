"""Routers package."""

from .errors import register_error_handlers
from .metrics import router as metrics_router
from .reference_data import router as reference_data_router
from .reports import router as reports_router
from .tickets import router as tickets_router

__all__ = [
    "metrics_router",
    "reference_data_router",
    "register_error_handlers",
    "reports_router",
    "tickets_router",
]
