"""Router containing ticket and comment operations."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import ServiceDeskError, TicketService
from .errors import http_error

router = APIRouter()


@router.get("", response_model=schemas.TicketListResponse)
def list_tickets(
    search: Optional[str] = Query(
        None,
        description="Case-insensitive match on ticket number, title, description or requester",
    ),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    priority_id: Optional[str] = Query(None, description="Filter by priority"),
    status_id: Optional[str] = Query(None, description="Filter by status"),
    skip: int = Query(0, ge=0, description="Number of tickets to skip"),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of tickets to return"),
    db: Session = Depends(get_db),
) -> schemas.TicketListResponse:
    """Return tickets newest first with optional filters."""

    items, total = TicketService.list_tickets(
        db,
        search=search,
        category_id=category_id,
        priority_id=priority_id,
        status_id=status_id,
        skip=skip,
        limit=limit,
    )
    return schemas.TicketListResponse(items=items, total=total, limit=limit, skip=skip)


@router.post("", response_model=schemas.TicketRead, status_code=status.HTTP_201_CREATED)
def create_ticket(payload: schemas.TicketCreate, db: Session = Depends(get_db)) -> schemas.TicketRead:
    """Open a new ticket in the initial status."""
    try:
        return TicketService.create_ticket(db, payload)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.get("/{ticket_id}", response_model=schemas.TicketRead)
def get_ticket(ticket_id: str, db: Session = Depends(get_db)) -> schemas.TicketRead:
    ticket = TicketService.get_ticket(db, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return ticket


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket(ticket_id: str, db: Session = Depends(get_db)) -> None:
    """Delete a ticket together with its comments."""
    try:
        TicketService.delete_ticket(db, ticket_id)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.put("/{ticket_id}/status", response_model=schemas.TicketRead)
def update_ticket_status(
    ticket_id: str,
    payload: schemas.TicketStatusUpdate,
    db: Session = Depends(get_db),
) -> schemas.TicketRead:
    try:
        return TicketService.update_status(db, ticket_id, payload.status_id)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.put("/{ticket_id}/assignment", response_model=schemas.TicketRead)
def update_ticket_assignment(
    ticket_id: str,
    payload: schemas.TicketAssignmentUpdate,
    db: Session = Depends(get_db),
) -> schemas.TicketRead:
    try:
        return TicketService.update_assignment(db, ticket_id, payload.assigned_to)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.get("/{ticket_id}/comments", response_model=schemas.CommentListResponse)
def list_ticket_comments(
    ticket_id: str,
    include_internal: bool = Query(True, description="Include internal staff notes"),
    db: Session = Depends(get_db),
) -> schemas.CommentListResponse:
    try:
        items = TicketService.list_comments(db, ticket_id, include_internal=include_internal)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc
    return schemas.CommentListResponse(items=items)


@router.post(
    "/{ticket_id}/comments",
    response_model=schemas.CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_ticket_comment(
    ticket_id: str,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
) -> schemas.CommentRead:
    try:
        return TicketService.add_comment(db, ticket_id, payload)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc
