"""Response envelopes shared by the ticket and reference data listings."""

from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

MAX_PAGE_SIZE = 500


class ItemsResponse(BaseModel, Generic[T]):
    """Complete listing wrapped as ``{"items": [...]}``."""

    items: List[T]


class PaginatedResponse(ItemsResponse[T], Generic[T]):
    """One page of a filtered listing plus the total across all pages."""

    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1, le=MAX_PAGE_SIZE)
    skip: int = Field(..., ge=0)
