"""CSV export of the reports view."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from .. import lifecycle, models
from ..lifecycle import as_utc
from .metrics import filter_by_created
from .tickets import TicketService

REPORT_HEADERS = [
    "Ticket Number",
    "Title",
    "Description",
    "Category",
    "Priority",
    "Status",
    "Requester Name",
    "Requester Email",
    "Assigned To",
    "Created At",
    "Updated At",
    "Resolved At",
    "Closed At",
]


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return as_utc(value).isoformat()


def report_filename(export_date: Optional[date] = None) -> str:
    export_date = export_date or lifecycle.utcnow().date()
    return f"service-desk-report-{export_date.isoformat()}.csv"


def ticket_row(ticket: models.Ticket) -> List[str]:
    return [
        ticket.ticket_number,
        ticket.title,
        ticket.description or "",
        ticket.category.name,
        ticket.priority.name,
        ticket.status.name,
        ticket.requester_name,
        ticket.requester_email,
        ticket.assigned_to or "",
        _format_timestamp(ticket.created_at),
        _format_timestamp(ticket.updated_at),
        _format_timestamp(ticket.resolved_at),
        _format_timestamp(ticket.closed_at),
    ]


def build_csv(tickets: Iterable[models.Ticket]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(REPORT_HEADERS)
    for ticket in tickets:
        writer.writerow(ticket_row(ticket))
    return buffer.getvalue()


class ReportService:
    """Builds downloadable reports over a created-at date range."""

    @staticmethod
    def tickets_in_range(
        db: Session, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[models.Ticket]:
        tickets, _ = TicketService.list_tickets(db, limit=None)
        return filter_by_created(tickets, start_date, end_date)

    @staticmethod
    def export_csv(
        db: Session, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> str:
        return build_csv(
            ReportService.tickets_in_range(db, start_date=start_date, end_date=end_date)
        )
