"""Expose Pydantic schemas for convenient imports."""

from .common import ItemsResponse, PaginatedResponse
from .metrics import DashboardResponse, ReportSummaryResponse, TicketMetrics
from .reference import (
    CategoryCreate,
    CategoryListResponse,
    CategoryRead,
    PriorityCreate,
    PriorityListResponse,
    PriorityRead,
    StatusCreate,
    StatusListResponse,
    StatusRead,
)
from .ticket import (
    CommentCreate,
    CommentListResponse,
    CommentRead,
    TicketAssignmentUpdate,
    TicketCreate,
    TicketListResponse,
    TicketRead,
    TicketStatusUpdate,
)

__all__ = [
    "ItemsResponse",
    "PaginatedResponse",
    "DashboardResponse",
    "ReportSummaryResponse",
    "TicketMetrics",
    "CategoryCreate",
    "CategoryListResponse",
    "CategoryRead",
    "PriorityCreate",
    "PriorityListResponse",
    "PriorityRead",
    "StatusCreate",
    "StatusListResponse",
    "StatusRead",
    "CommentCreate",
    "CommentListResponse",
    "CommentRead",
    "TicketAssignmentUpdate",
    "TicketCreate",
    "TicketListResponse",
    "TicketRead",
    "TicketStatusUpdate",
]
