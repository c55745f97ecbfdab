"""Report endpoints - per-project totals and billing."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from worktimer.config import settings
from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError
from worktimer.models.report import ProjectTotal, Report
from worktimer.routers.auth import get_current_user_id
from worktimer.routers.errors import http_error
from worktimer.services.aggregation import local_date
from worktimer.services.report_service import ReportService, current_month, report_window
from worktimer.services.time_entry_service import TimeEntryService
from worktimer.utils.duration import utc_now


router = APIRouter(prefix="/reports", tags=["reports"])


def resolve_range(date_from: Optional[date], date_to: Optional[date]) -> tuple[date, date]:
    """Fill missing bounds with the current month in the display timezone."""
    first, last = current_month(local_date(utc_now(), settings.tz))
    return date_from or first, date_to or last


@router.get("", response_model=Report)
async def build_report(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    hourly_rate: Optional[float] = Query(None, alias="hourlyRate", ge=0),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Per-project report for a date range (defaults to the current month).

    - Billing appears when an hourly rate is given or set on the account
    - Returns 422 if dateFrom is after dateTo
    """
    date_from, date_to = resolve_range(date_from, date_to)
    service = ReportService(db)
    try:
        return await service.build_report(
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            hourly_rate=hourly_rate,
            tz=settings.tz,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.get("/projects", response_model=list[ProjectTotal])
async def project_totals(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Raw per-project millisecond totals for a date range."""
    date_from, date_to = resolve_range(date_from, date_to)
    try:
        start, end = report_window(date_from, date_to, settings.tz)
        return await TimeEntryService(db).project_totals(user_id, start, end)
    except TimeTrackingError as e:
        raise http_error(e)
