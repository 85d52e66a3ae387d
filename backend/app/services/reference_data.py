"""Catalog operations for categories, priorities and statuses."""

from __future__ import annotations

import logging
from typing import List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db_types import normalize_uuid
from .errors import NotFoundError, ReferenceInUseError, ValidationError, storage_errors

LOGGER = logging.getLogger(__name__)

ReferenceModel = TypeVar("ReferenceModel")

DEFAULT_CATEGORIES = [
    {"name": "IT Support", "description": "Technical issues, software, hardware", "color": "#3b82f6"},
    {"name": "HR", "description": "Human resources inquiries", "color": "#8b5cf6"},
    {"name": "Facilities", "description": "Office maintenance, equipment", "color": "#10b981"},
    {"name": "Finance", "description": "Billing, expenses, payments", "color": "#f59e0b"},
    {"name": "General", "description": "Other requests", "color": "#6b7280"},
]

DEFAULT_PRIORITIES = [
    {"name": "Low", "level": 1, "color": "#10b981"},
    {"name": "Medium", "level": 2, "color": "#f59e0b"},
    {"name": "High", "level": 3, "color": "#ef4444"},
    {"name": "Critical", "level": 4, "color": "#dc2626"},
]

DEFAULT_STATUSES = [
    {"name": "Open", "order": 1, "color": "#3b82f6", "is_closed": False, "role": models.StatusRole.OPEN},
    {
        "name": "In Progress",
        "order": 2,
        "color": "#f59e0b",
        "is_closed": False,
        "role": models.StatusRole.IN_PROGRESS,
    },
    {"name": "Waiting", "order": 3, "color": "#8b5cf6", "is_closed": False, "role": models.StatusRole.NONE},
    {
        "name": "Resolved",
        "order": 4,
        "color": "#10b981",
        "is_closed": False,
        "role": models.StatusRole.RESOLVED,
    },
    {"name": "Closed", "order": 5, "color": "#6b7280", "is_closed": True, "role": models.StatusRole.CLOSED},
]


class ReferenceDataService:
    """Reads and maintains the shared reference tables."""

    @staticmethod
    def ensure_defaults(db: Session) -> None:
        created = False
        for model, defaults in (
            (models.Category, DEFAULT_CATEGORIES),
            (models.Priority, DEFAULT_PRIORITIES),
            (models.Status, DEFAULT_STATUSES),
        ):
            with storage_errors(db):
                existing_names = {name for (name,) in db.query(model.name).all()}
            for payload in defaults:
                if payload["name"] in existing_names:
                    continue
                db.add(model(**payload))
                created = True
        if created:
            with storage_errors(db, conflict_message="Reference data already exists."):
                db.commit()
            LOGGER.info("Seeded default reference data")

    @staticmethod
    def list_categories(db: Session) -> List[models.Category]:
        with storage_errors(db):
            return db.query(models.Category).order_by(models.Category.name.asc()).all()

    @staticmethod
    def list_priorities(db: Session) -> List[models.Priority]:
        with storage_errors(db):
            return db.query(models.Priority).order_by(models.Priority.level.asc()).all()

    @staticmethod
    def list_statuses(db: Session) -> List[models.Status]:
        with storage_errors(db):
            return db.query(models.Status).order_by(models.Status.order.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[models.Category]:
        return ReferenceDataService._get(db, models.Category, category_id)

    @staticmethod
    def get_priority(db: Session, priority_id: str) -> Optional[models.Priority]:
        return ReferenceDataService._get(db, models.Priority, priority_id)

    @staticmethod
    def get_status(db: Session, status_id: str) -> Optional[models.Status]:
        return ReferenceDataService._get(db, models.Status, status_id)

    @staticmethod
    def initial_status(db: Session) -> models.Status:
        """Return the status new tickets start in."""

        with storage_errors(db):
            status = (
                db.query(models.Status)
                .filter(models.Status.role == models.StatusRole.OPEN)
                .order_by(models.Status.order.asc())
                .first()
            )
        if status is None:
            raise NotFoundError("No initial (open) status is configured.")
        return status

    @staticmethod
    def create_category(db: Session, data: schemas.CategoryCreate) -> models.Category:
        return ReferenceDataService._create(db, models.Category, data.model_dump())

    @staticmethod
    def create_priority(db: Session, data: schemas.PriorityCreate) -> models.Priority:
        return ReferenceDataService._create(db, models.Priority, data.model_dump())

    @staticmethod
    def create_status(db: Session, data: schemas.StatusCreate) -> models.Status:
        return ReferenceDataService._create(db, models.Status, data.model_dump())

    @staticmethod
    def delete_category(db: Session, category_id: str) -> None:
        ReferenceDataService._delete(db, models.Category, category_id, models.Ticket.category_id)

    @staticmethod
    def delete_priority(db: Session, priority_id: str) -> None:
        ReferenceDataService._delete(db, models.Priority, priority_id, models.Ticket.priority_id)

    @staticmethod
    def delete_status(db: Session, status_id: str) -> None:
        ReferenceDataService._delete(db, models.Status, status_id, models.Ticket.status_id)

    @staticmethod
    def _get(db: Session, model: Type[ReferenceModel], record_id: str) -> Optional[ReferenceModel]:
        identifier = normalize_uuid(record_id)
        if identifier is None:
            return None
        with storage_errors(db):
            return db.query(model).filter(model.id == identifier).first()

    @staticmethod
    def _create(db: Session, model: Type[ReferenceModel], payload: dict) -> ReferenceModel:
        payload["name"] = payload["name"].strip()
        if not payload["name"]:
            raise ValidationError(f"{model.__name__} name cannot be empty.")
        record = model(**payload)
        db.add(record)
        with storage_errors(
            db, conflict_message=f"A {model.__name__.lower()} named '{payload['name']}' already exists."
        ):
            db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def _delete(db: Session, model: Type[ReferenceModel], record_id: str, ticket_column) -> None:
        record = ReferenceDataService._get(db, model, record_id)
        if record is None:
            raise NotFoundError(f"{model.__name__} not found")
        with storage_errors(db):
            in_use = (
                db.query(func.count(models.Ticket.id)).filter(ticket_column == record.id).scalar()
                or 0
            )
        if in_use:
            raise ReferenceInUseError(
                f"{model.__name__} '{record.name}' is referenced by {in_use} ticket(s)."
            )
        db.delete(record)
        with storage_errors(db):
            db.commit()
