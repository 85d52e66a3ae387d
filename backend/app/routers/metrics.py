"""Router exposing aggregated dashboard metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import MetricsService

router = APIRouter()


@router.get("/dashboard", response_model=schemas.DashboardResponse)
def get_dashboard_metrics(
    recent: int = Query(5, ge=0, le=50, description="Number of recent tickets to include"),
    db: Session = Depends(get_db),
) -> schemas.DashboardResponse:
    """Return metrics over every ticket plus the most recently created ones."""

    payload = MetricsService.dashboard(db, recent_limit=recent)
    return schemas.DashboardResponse(**payload)
