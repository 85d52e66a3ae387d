"""Pydantic schemas for categories, priorities and statuses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..lifecycle import StatusRole
from .common import ItemsResponse

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    color: str = Field(default="#3b82f6", pattern=HEX_COLOR_PATTERN)


class CategoryCreate(CategoryBase):
    pass


class CategoryRead(CategoryBase):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PriorityBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    level: int = Field(..., ge=1, description="1 = Low ... 4 = Critical")
    color: str = Field(default="#6b7280", pattern=HEX_COLOR_PATTERN)


class PriorityCreate(PriorityBase):
    pass


class PriorityRead(PriorityBase):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int = Field(..., ge=0, description="Display order")
    color: str = Field(default="#6b7280", pattern=HEX_COLOR_PATTERN)
    is_closed: bool = False
    role: StatusRole = StatusRole.NONE


class StatusCreate(StatusBase):
    pass


class StatusRead(StatusBase):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryListResponse(ItemsResponse[CategoryRead]):
    pass


class PriorityListResponse(ItemsResponse[PriorityRead]):
    pass


class StatusListResponse(ItemsResponse[StatusRead]):
    pass
