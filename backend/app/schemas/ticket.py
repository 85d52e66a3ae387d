"""Pydantic schemas for tickets and their comments."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import ItemsResponse, PaginatedResponse
from .reference import CategoryRead, PriorityRead, StatusRead


class TicketCreate(BaseModel):
    """Fields supplied by the requester; numbering and timestamps are server side."""

    title: str = Field(..., max_length=255)
    description: str = ""
    category_id: str
    priority_id: str
    requester_name: str = Field(..., max_length=255)
    requester_email: str = Field(..., max_length=255)
    assigned_to: str = Field(default="", max_length=255)
    ticket_number: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Leave empty to generate PREFIX-YYYYMMDD-NNNN",
    )


class TicketStatusUpdate(BaseModel):
    status_id: str


class TicketAssignmentUpdate(BaseModel):
    assigned_to: str = Field(default="", max_length=255)


class TicketRead(BaseModel):
    id: str
    ticket_number: str
    title: str
    description: str
    category_id: str
    priority_id: str
    status_id: str
    requester_name: str
    requester_email: str
    assigned_to: str
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    category: CategoryRead
    priority: PriorityRead
    status: StatusRead

    model_config = ConfigDict(from_attributes=True)


class TicketListResponse(PaginatedResponse[TicketRead]):
    pass


class CommentCreate(BaseModel):
    author_name: str = Field(..., max_length=255)
    comment: str
    is_internal: bool = False


class CommentRead(BaseModel):
    id: str
    ticket_id: str
    comment: str
    author_name: str
    is_internal: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(ItemsResponse[CommentRead]):
    pass
