"""Business logic for tickets and their comment threads."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from .. import lifecycle, models, schemas
from ..db_types import normalize_uuid
from .errors import NotFoundError, ValidationError, storage_errors
from .reference_data import ReferenceDataService

LOGGER = logging.getLogger(__name__)

SEARCHABLE_COLUMNS = (
    models.Ticket.ticket_number,
    models.Ticket.title,
    models.Ticket.description,
    models.Ticket.requester_name,
)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class TicketService:
    """Create, query and move tickets through their lifecycle."""

    @staticmethod
    def _query(db: Session):
        return db.query(models.Ticket).options(
            selectinload(models.Ticket.category),
            selectinload(models.Ticket.priority),
            selectinload(models.Ticket.status),
        )

    @staticmethod
    def list_tickets(
        db: Session,
        *,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        priority_id: Optional[str] = None,
        status_id: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> Tuple[List[models.Ticket], int]:
        """Return tickets newest first; every supplied filter must match."""

        query = TicketService._query(db)

        for column, value in (
            (models.Ticket.category_id, category_id),
            (models.Ticket.priority_id, priority_id),
            (models.Ticket.status_id, status_id),
        ):
            if value is None or value == "":
                continue
            identifier = normalize_uuid(value)
            if identifier is None:
                return [], 0
            query = query.filter(column == identifier)

        normalized = _clean(search).lower()
        if normalized:
            pattern = f"%{_escape_like(normalized)}%"
            query = query.filter(
                or_(*(func.lower(column).like(pattern, escape="\\") for column in SEARCHABLE_COLUMNS))
            )

        query = query.order_by(
            models.Ticket.created_at.desc(), models.Ticket.ticket_number.desc()
        )
        with storage_errors(db):
            total = query.count()
            query = query.offset(max(skip, 0))
            if limit is not None:
                query = query.limit(max(limit, 1))
            return query.all(), total

    @staticmethod
    def recent_tickets(db: Session, limit: int = 5) -> List[models.Ticket]:
        items, _ = TicketService.list_tickets(db, limit=limit)
        return items

    @staticmethod
    def get_ticket(db: Session, ticket_id: str) -> Optional[models.Ticket]:
        identifier = normalize_uuid(ticket_id)
        if identifier is None:
            return None
        with storage_errors(db):
            return TicketService._query(db).filter(models.Ticket.id == identifier).first()

    @staticmethod
    def _require_ticket(db: Session, ticket_id: str) -> models.Ticket:
        ticket = TicketService.get_ticket(db, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    @staticmethod
    def create_ticket(db: Session, data: schemas.TicketCreate) -> models.Ticket:
        title = _clean(data.title)
        requester_name = _clean(data.requester_name)
        requester_email = _clean(data.requester_email)

        missing = [
            field
            for field, value in (
                ("title", title),
                ("requester_name", requester_name),
                ("requester_email", requester_email),
            )
            if not value
        ]
        if missing:
            raise ValidationError(f"Required fields cannot be empty: {', '.join(missing)}")
        if "@" not in requester_email:
            raise ValidationError("requester_email must be an email address")

        category = ReferenceDataService.get_category(db, data.category_id)
        if category is None:
            raise ValidationError("category_id does not reference an existing category")
        priority = ReferenceDataService.get_priority(db, data.priority_id)
        if priority is None:
            raise ValidationError("priority_id does not reference an existing priority")
        status = ReferenceDataService.initial_status(db)

        ticket = models.Ticket(
            ticket_number=_clean(data.ticket_number) or None,
            title=title,
            description=data.description or "",
            category=category,
            priority=priority,
            status=status,
            requester_name=requester_name,
            requester_email=requester_email,
            assigned_to=_clean(data.assigned_to),
        )
        db.add(ticket)
        with storage_errors(db, conflict_message="Ticket number already exists."):
            db.commit()
        db.refresh(ticket)
        LOGGER.info("Created ticket %s in category %s", ticket.ticket_number, category.name)
        return ticket

    @staticmethod
    def update_status(db: Session, ticket_id: str, status_id: str) -> models.Ticket:
        ticket = TicketService._require_ticket(db, ticket_id)
        status = ReferenceDataService.get_status(db, status_id)
        if status is None:
            raise NotFoundError("Status not found")

        previous = ticket.status.name if ticket.status is not None else None
        ticket.status = status
        ticket.status_id = status.id
        ticket.updated_at = lifecycle.next_updated_at(ticket.updated_at)
        with storage_errors(db):
            db.commit()
        db.refresh(ticket)
        LOGGER.info("Ticket %s moved from %s to %s", ticket.ticket_number, previous, status.name)
        return ticket

    @staticmethod
    def update_assignment(db: Session, ticket_id: str, assignee: Optional[str]) -> models.Ticket:
        ticket = TicketService._require_ticket(db, ticket_id)
        ticket.assigned_to = _clean(assignee)
        ticket.updated_at = lifecycle.next_updated_at(ticket.updated_at)
        with storage_errors(db):
            db.commit()
        db.refresh(ticket)
        LOGGER.info("Ticket %s assigned to %r", ticket.ticket_number, ticket.assigned_to)
        return ticket

    @staticmethod
    def delete_ticket(db: Session, ticket_id: str) -> None:
        ticket = TicketService._require_ticket(db, ticket_id)
        number = ticket.ticket_number
        db.delete(ticket)
        with storage_errors(db):
            db.commit()
        LOGGER.info("Deleted ticket %s and its comments", number)

    @staticmethod
    def add_comment(db: Session, ticket_id: str, data: schemas.CommentCreate) -> models.TicketComment:
        author = _clean(data.author_name)
        text = _clean(data.comment)
        if not text:
            raise ValidationError("Comment text cannot be empty")
        if not author:
            raise ValidationError("Comment author cannot be empty")

        ticket = TicketService._require_ticket(db, ticket_id)
        comment = models.TicketComment(
            ticket_id=ticket.id,
            comment=text,
            author_name=author,
            is_internal=data.is_internal,
        )
        db.add(comment)
        with storage_errors(db):
            db.commit()
        db.refresh(comment)
        return comment

    @staticmethod
    def list_comments(
        db: Session, ticket_id: str, *, include_internal: bool = True
    ) -> List[models.TicketComment]:
        ticket = TicketService._require_ticket(db, ticket_id)
        query = db.query(models.TicketComment).filter(models.TicketComment.ticket_id == ticket.id)
        if not include_internal:
            query = query.filter(models.TicketComment.is_internal.is_(False))
        with storage_errors(db):
            return query.order_by(models.TicketComment.created_at.asc()).all()
