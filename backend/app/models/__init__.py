"""Expose SQLAlchemy models for convenient imports."""

from ..lifecycle import StatusRole
from .reference import Category, Priority, Status
from .ticket import Ticket, TicketComment, TicketDailySequence

__all__ = [
    "Category",
    "Priority",
    "Status",
    "StatusRole",
    "Ticket",
    "TicketComment",
    "TicketDailySequence",
]
