"""Aggregated ticket metrics used by the dashboard and the reports view.

``compute_metrics`` is a pure function over :class:`TicketSnapshot` values: it
never touches the database, so callers fetch the tickets once and the
aggregation can be exercised entirely in memory.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from sqlalchemy.orm import Session

from .. import models
from ..lifecycle import StatusRole, as_utc
from .tickets import TicketService

DateBound = Union[date, datetime, None]
T = TypeVar("T")

SECONDS_PER_HOUR = Decimal("3600")


@dataclass(frozen=True)
class TicketSnapshot:
    """Immutable view of a ticket joined with its reference data."""

    ticket_number: str
    created_at: datetime
    category_name: str
    priority_name: str
    status_name: str
    status_role: StatusRole = StatusRole.NONE
    status_is_closed: bool = False
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, ticket: models.Ticket) -> "TicketSnapshot":
        return cls(
            ticket_number=ticket.ticket_number,
            created_at=as_utc(ticket.created_at),
            category_name=ticket.category.name,
            priority_name=ticket.priority.name,
            status_name=ticket.status.name,
            status_role=StatusRole(ticket.status.role),
            status_is_closed=bool(ticket.status.is_closed),
            resolved_at=as_utc(ticket.resolved_at),
            closed_at=as_utc(ticket.closed_at),
        )


@dataclass(frozen=True)
class TicketMetrics:
    total: int = 0
    open: int = 0
    in_progress: int = 0
    waiting: int = 0
    resolved_status: int = 0
    closed_status: int = 0
    resolved: int = 0
    closed: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    by_status: Dict[str, int] = field(default_factory=dict)
    average_resolution_hours: Optional[int] = None
    resolution_rate: float = 0.0
    closure_rate: float = 0.0

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "open": self.open,
            "in_progress": self.in_progress,
            "waiting": self.waiting,
            "resolved_status": self.resolved_status,
            "closed_status": self.closed_status,
            "resolved": self.resolved,
            "closed": self.closed,
            "by_category": dict(self.by_category),
            "by_priority": dict(self.by_priority),
            "by_status": dict(self.by_status),
            "average_resolution_hours": self.average_resolution_hours,
            "resolution_rate": self.resolution_rate,
            "closure_rate": self.closure_rate,
        }


def _lower_bound(value: DateBound) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _upper_bound(value: DateBound) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    # A plain date includes the whole day.
    return datetime.combine(value + timedelta(days=1), time.min, tzinfo=timezone.utc) - timedelta(
        microseconds=1
    )


def filter_by_created(
    tickets: Iterable[T], start: DateBound = None, end: DateBound = None
) -> List[T]:
    """Return the items whose ``created_at`` lies in the inclusive ``[start, end]`` range.

    Works for snapshots and ORM tickets alike.
    """

    lower = _lower_bound(start)
    upper = _upper_bound(end)
    matching = []
    for ticket in tickets:
        created = as_utc(ticket.created_at)
        if lower is not None and created < lower:
            continue
        if upper is not None and created > upper:
            continue
        matching.append(ticket)
    return matching


def average_resolution_hours(tickets: Sequence[TicketSnapshot]) -> Optional[int]:
    """Mean creation-to-resolution time in whole hours, ``None`` when nothing is resolved."""

    durations = [
        Decimal(str((as_utc(ticket.resolved_at) - as_utc(ticket.created_at)).total_seconds()))
        for ticket in tickets
        if ticket.resolved_at is not None
    ]
    if not durations:
        return None
    mean_hours = sum(durations) / len(durations) / SECONDS_PER_HOUR
    return int(mean_hours.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _rate(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return part / total


def compute_metrics(
    tickets: Iterable[TicketSnapshot], start: DateBound = None, end: DateBound = None
) -> TicketMetrics:
    matching = filter_by_created(tickets, start, end)
    total = len(matching)
    roles = Counter(ticket.status_role for ticket in matching)
    resolved = sum(1 for ticket in matching if ticket.resolved_at is not None)
    closed = sum(1 for ticket in matching if ticket.closed_at is not None)

    return TicketMetrics(
        total=total,
        open=roles[StatusRole.OPEN],
        in_progress=roles[StatusRole.IN_PROGRESS],
        waiting=roles[StatusRole.NONE],
        resolved_status=roles[StatusRole.RESOLVED],
        closed_status=sum(
            1
            for ticket in matching
            if ticket.status_is_closed or ticket.status_role == StatusRole.CLOSED
        ),
        resolved=resolved,
        closed=closed,
        by_category=dict(Counter(ticket.category_name for ticket in matching)),
        by_priority=dict(Counter(ticket.priority_name for ticket in matching)),
        by_status=dict(Counter(ticket.status_name for ticket in matching)),
        average_resolution_hours=average_resolution_hours(matching),
        resolution_rate=_rate(resolved, total),
        closure_rate=_rate(closed, total),
    )


class MetricsService:
    """Fetches ticket snapshots and aggregates them for the API."""

    @staticmethod
    def snapshots(db: Session) -> List[TicketSnapshot]:
        tickets, _ = TicketService.list_tickets(db, limit=None)
        return [TicketSnapshot.from_model(ticket) for ticket in tickets]

    @staticmethod
    def dashboard(db: Session, *, recent_limit: int = 5) -> dict:
        tickets, _ = TicketService.list_tickets(db, limit=None)
        metrics = compute_metrics(TicketSnapshot.from_model(ticket) for ticket in tickets)
        return {
            "metrics": metrics.as_dict(),
            "recent_tickets": tickets[:recent_limit],
        }

    @staticmethod
    def report(
        db: Session, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict:
        metrics = compute_metrics(MetricsService.snapshots(db), start_date, end_date)
        return {
            "start_date": start_date,
            "end_date": end_date,
            "metrics": metrics.as_dict(),
        }
