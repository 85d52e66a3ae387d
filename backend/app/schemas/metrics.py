from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .ticket import TicketRead


class TicketMetrics(BaseModel):
    total: int = Field(..., ge=0)
    open: int = Field(..., ge=0)
    in_progress: int = Field(..., ge=0)
    waiting: int = Field(..., ge=0)
    resolved_status: int = Field(..., ge=0, description="Tickets currently in a resolved status")
    closed_status: int = Field(..., ge=0, description="Tickets currently in a closed status")
    resolved: int = Field(..., ge=0, description="Tickets that have been resolved at least once")
    closed: int = Field(..., ge=0, description="Tickets that have been closed at least once")
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_priority: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)
    average_resolution_hours: Optional[int] = Field(
        default=None,
        description="Mean creation-to-resolution time in whole hours; null when nothing is resolved",
    )
    resolution_rate: float = Field(..., ge=0, le=1)
    closure_rate: float = Field(..., ge=0, le=1)


class DashboardResponse(BaseModel):
    metrics: TicketMetrics
    recent_tickets: List[TicketRead]


class ReportSummaryResponse(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    metrics: TicketMetrics
