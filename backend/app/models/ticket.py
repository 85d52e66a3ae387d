"""Support tickets, their comment threads and the per-day numbering counter."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    select,
)
from sqlalchemy.orm import object_session, relationship

from .. import lifecycle
from ..database import Base
from ..db_types import GUID, UTCDateTime, new_id
from ..numbering import allocate_ticket_number, reserve_supplied_number
from .reference import Status


def _utcnow():
    return lifecycle.utcnow()


class Ticket(Base):
    """A single support request tracked through its lifecycle."""

    __tablename__ = "tickets"

    id = Column(GUID(), primary_key=True, default=new_id)
    ticket_number = Column(String(32), nullable=False, unique=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="", server_default="")
    category_id = Column(GUID(), ForeignKey("categories.id"), nullable=False)
    priority_id = Column(GUID(), ForeignKey("priorities.id"), nullable=False)
    status_id = Column(GUID(), ForeignKey("statuses.id"), nullable=False)
    requester_name = Column(String(255), nullable=False)
    requester_email = Column(String(255), nullable=False)
    assigned_to = Column(String(255), nullable=False, default="", server_default="")
    created_at = Column(UTCDateTime(), nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=_utcnow)
    resolved_at = Column(UTCDateTime(), nullable=True)
    closed_at = Column(UTCDateTime(), nullable=True)

    category = relationship("Category", back_populates="tickets")
    priority = relationship("Priority", back_populates="tickets")
    status = relationship("Status", back_populates="tickets")
    comments = relationship(
        "TicketComment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TicketComment.created_at",
    )


class TicketComment(Base):
    """Note attached to a ticket; internal notes are hidden from requesters."""

    __tablename__ = "ticket_comments"

    id = Column(GUID(), primary_key=True, default=new_id)
    ticket_id = Column(
        GUID(),
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
    )
    comment = Column(Text, nullable=False)
    author_name = Column(String(255), nullable=False)
    is_internal = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(UTCDateTime(), nullable=False, default=_utcnow)

    ticket = relationship("Ticket", back_populates="comments")


class TicketDailySequence(Base):
    """Last ticket sequence handed out for a calendar day."""

    __tablename__ = "ticket_daily_sequences"

    sequence_date = Column(Date, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


Index("idx_tickets_status", Ticket.status_id)
Index("idx_tickets_category", Ticket.category_id)
Index("idx_tickets_priority", Ticket.priority_id)
Index("idx_tickets_created", Ticket.created_at)
Index("idx_comments_ticket", TicketComment.ticket_id)


@event.listens_for(Ticket, "before_insert")
def _stamp_new_ticket(_mapper, connection, target: Ticket) -> None:
    created_at = lifecycle.as_utc(target.created_at) or lifecycle.utcnow()
    target.created_at = created_at
    target.updated_at = created_at
    target.resolved_at = None
    target.closed_at = None
    if not (target.ticket_number or "").strip():
        target.ticket_number = allocate_ticket_number(connection, created_at)
    else:
        reserve_supplied_number(connection, target.ticket_number)


@event.listens_for(Ticket, "before_update")
def _stamp_updated_ticket(_mapper, connection, target: Ticket) -> None:
    session = object_session(target)
    if session is not None and not session.is_modified(target, include_collections=False):
        return

    tickets = Ticket.__table__
    stored = connection.execute(
        select(
            tickets.c.ticket_number,
            tickets.c.status_id,
            tickets.c.updated_at,
            tickets.c.resolved_at,
            tickets.c.closed_at,
        ).where(tickets.c.id == target.id)
    ).one_or_none()
    if stored is None:
        return

    target.ticket_number = stored.ticket_number
    updated_at = lifecycle.next_updated_at(stored.updated_at)
    target.updated_at = updated_at

    transition = None
    if target.status_id is not None and str(target.status_id) != str(stored.status_id):
        statuses = Status.__table__
        row = connection.execute(
            select(statuses.c.role, statuses.c.is_closed).where(
                statuses.c.id == target.status_id
            )
        ).one_or_none()
        if row is not None:
            transition = lifecycle.StatusFacts(
                role=lifecycle.StatusRole(row.role), is_closed=bool(row.is_closed)
            )

    stamps = lifecycle.apply_status_transition(
        lifecycle.LifecycleStamps(
            resolved_at=stored.resolved_at, closed_at=stored.closed_at
        ),
        transition,
        updated_at,
    )
    target.resolved_at = stamps.resolved_at
    target.closed_at = stamps.closed_at
