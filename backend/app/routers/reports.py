"""Router exposing the date-ranged report and its CSV export."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import MetricsService, ReportService, report_filename

router = APIRouter()


def _validate_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date cannot be after end_date",
        )


@router.get("/summary", response_model=schemas.ReportSummaryResponse)
def get_report_summary(
    start_date: Optional[date] = Query(None, description="Include tickets created on or after this date"),
    end_date: Optional[date] = Query(None, description="Include tickets created on or before this date"),
    db: Session = Depends(get_db),
) -> schemas.ReportSummaryResponse:
    _validate_range(start_date, end_date)
    payload = MetricsService.report(db, start_date=start_date, end_date=end_date)
    return schemas.ReportSummaryResponse(**payload)


@router.get("/export", response_class=StreamingResponse)
def export_report(
    start_date: Optional[date] = Query(None, description="Include tickets created on or after this date"),
    end_date: Optional[date] = Query(None, description="Include tickets created on or before this date"),
    db: Session = Depends(get_db),
) -> StreamingResponse:
    """Download the matching tickets as CSV."""

    _validate_range(start_date, end_date)
    csv_content = ReportService.export_csv(db, start_date=start_date, end_date=end_date)
    headers = {
        "Content-Disposition": f"attachment; filename={report_filename()}",
        "Cache-Control": "no-store",
    }
    return StreamingResponse(iter([csv_content]), media_type="text/csv", headers=headers)
