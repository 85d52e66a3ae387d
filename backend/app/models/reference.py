"""Reference data used to classify tickets: categories, priorities and statuses."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Enum as SAEnum, Integer, String, Text, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, UTCDateTime, new_id
from ..lifecycle import StatusRole

STATUS_ROLE_ENUM = SAEnum(
    StatusRole,
    name="status_role_enum",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
    native_enum=False,
    validate_strings=True,
)


class Category(Base):
    """Functional area a ticket belongs to (IT Support, HR, ...)."""

    __tablename__ = "categories"

    id = Column(GUID(), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="", server_default="")
    color = Column(String(20), nullable=False, default="#3b82f6", server_default="#3b82f6")
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)

    tickets = relationship("Ticket", back_populates="category", passive_deletes="all")


class Priority(Base):
    """Urgency of a ticket; ``level`` orders priorities from Low (1) to Critical (4)."""

    __tablename__ = "priorities"

    id = Column(GUID(), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    level = Column(Integer, nullable=False)
    color = Column(String(20), nullable=False, default="#6b7280", server_default="#6b7280")
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)

    tickets = relationship("Ticket", back_populates="priority", passive_deletes="all")


class Status(Base):
    """Workflow state of a ticket.

    ``role`` carries the behaviour (initial state, resolution, closure) so the
    display ``name`` can be edited freely.
    """

    __tablename__ = "statuses"

    id = Column(GUID(), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    order = Column("order", Integer, nullable=False)
    color = Column(String(20), nullable=False, default="#6b7280", server_default="#6b7280")
    is_closed = Column(Boolean, nullable=False, default=False, server_default="0")
    role = Column(
        STATUS_ROLE_ENUM,
        nullable=False,
        default=StatusRole.NONE,
        server_default=StatusRole.NONE.value,
    )
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)

    tickets = relationship("Ticket", back_populates="status", passive_deletes="all")
