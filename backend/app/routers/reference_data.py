"""Router exposing categories, priorities and statuses."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import ReferenceDataService, ServiceDeskError
from .errors import http_error

router = APIRouter()


@router.get("/categories", response_model=schemas.CategoryListResponse, tags=["reference-data"])
def list_categories(db: Session = Depends(get_db)) -> schemas.CategoryListResponse:
    return schemas.CategoryListResponse(items=ReferenceDataService.list_categories(db))


@router.post(
    "/categories",
    response_model=schemas.CategoryRead,
    status_code=status.HTTP_201_CREATED,
    tags=["reference-data"],
)
def create_category(
    payload: schemas.CategoryCreate, db: Session = Depends(get_db)
) -> schemas.CategoryRead:
    try:
        return ReferenceDataService.create_category(db, payload)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.delete(
    "/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["reference-data"]
)
def delete_category(category_id: str, db: Session = Depends(get_db)) -> None:
    try:
        ReferenceDataService.delete_category(db, category_id)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.get("/priorities", response_model=schemas.PriorityListResponse, tags=["reference-data"])
def list_priorities(db: Session = Depends(get_db)) -> schemas.PriorityListResponse:
    return schemas.PriorityListResponse(items=ReferenceDataService.list_priorities(db))


@router.post(
    "/priorities",
    response_model=schemas.PriorityRead,
    status_code=status.HTTP_201_CREATED,
    tags=["reference-data"],
)
def create_priority(
    payload: schemas.PriorityCreate, db: Session = Depends(get_db)
) -> schemas.PriorityRead:
    try:
        return ReferenceDataService.create_priority(db, payload)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.delete(
    "/priorities/{priority_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["reference-data"]
)
def delete_priority(priority_id: str, db: Session = Depends(get_db)) -> None:
    try:
        ReferenceDataService.delete_priority(db, priority_id)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.get("/statuses", response_model=schemas.StatusListResponse, tags=["reference-data"])
def list_statuses(db: Session = Depends(get_db)) -> schemas.StatusListResponse:
    return schemas.StatusListResponse(items=ReferenceDataService.list_statuses(db))


@router.post(
    "/statuses",
    response_model=schemas.StatusRead,
    status_code=status.HTTP_201_CREATED,
    tags=["reference-data"],
)
def create_status(payload: schemas.StatusCreate, db: Session = Depends(get_db)) -> schemas.StatusRead:
    try:
        return ReferenceDataService.create_status(db, payload)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc


@router.delete(
    "/statuses/{status_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["reference-data"]
)
def delete_status(status_id: str, db: Session = Depends(get_db)) -> None:
    try:
        ReferenceDataService.delete_status(db, status_id)
    except ServiceDeskError as exc:
        raise http_error(exc) from exc
