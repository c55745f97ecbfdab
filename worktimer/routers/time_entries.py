"""Time entry endpoints - time tracking operations."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from worktimer.config import settings
from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError
from worktimer.models.time_entry import (
    BackfillResult,
    EntryOrderField,
    EntrySummary,
    SortOrder,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryPage,
    TimeEntryUpdate,
)
from worktimer.routers.auth import get_current_user_id
from worktimer.routers.errors import http_error
from worktimer.services.aggregation import day_totals
from worktimer.services.time_entry_service import TimeEntryService
from worktimer.utils.duration import utc_now


router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.post("", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
async def start_entry(
    entry_create: TimeEntryCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Start a new time entry.

    - Requires authentication
    - Any running entry is stopped first
    - Project must belong to the user
    - Giving an end_time logs a finished entry instead
    """
    service = TimeEntryService(db)
    try:
        return await service.start_new_entry(user_id=user_id, entry_create=entry_create)
    except TimeTrackingError as e:
        raise http_error(e)


@router.post("/stop", response_model=TimeEntry)
async def stop_current_entry(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Stop the running time entry.

    - Returns 404 if nothing is running
    """
    service = TimeEntryService(db)
    try:
        return await service.stop_current(user_id=user_id)
    except TimeTrackingError as e:
        raise http_error(e)


@router.get("/current", response_model=TimeEntry)
async def get_current_entry(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the running time entry.

    - Returns 404 if nothing is running
    """
    service = TimeEntryService(db)
    entry = await service.get_current_entry(user_id=user_id)

    if not entry:
        raise HTTPException(status_code=404, detail="No time entry running")

    return entry


@router.get("/summary", response_model=EntrySummary)
async def get_summary(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Today, last-seven-days and month-to-date totals.

    Totals cover finished entries; the running entry and its elapsed time
    are returned separately.
    """
    service = TimeEntryService(db)
    return await service.summary(user_id=user_id, tz=settings.tz)


@router.post("/backfill", response_model=BackfillResult)
async def backfill_durations(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Cache missing durations of finished entries."""
    service = TimeEntryService(db)
    return BackfillResult(updated=await service.backfill_durations(user_id))


@router.get("", response_model=TimeEntryPage)
async def list_entries(
    project_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    order_by: EntryOrderField = Query(EntryOrderField.START_TIME),
    order: SortOrder = Query(SortOrder.DESC),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List time entries for the authenticated user.

    - Paginated, most recent first by default
    - days groups the page by calendar day with per-day totals
    """
    service = TimeEntryService(db)
    result = await service.list_entries(
        user_id=user_id,
        project_id=project_id,
        page=page,
        size=size,
        order_by=order_by,
        order=order,
    )
    result.days = day_totals(result.entries, now=utc_now(), tz=settings.tz)
    return result


@router.get("/{entry_id}", response_model=TimeEntry)
async def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a specific time entry by ID.

    - User must own the entry
    """
    service = TimeEntryService(db)
    try:
        return await service.get_entry(user_id=user_id, entry_id=entry_id)
    except TimeTrackingError as e:
        raise http_error(e)


@router.post("/{entry_id}/stop", response_model=TimeEntry)
async def stop_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Stop a specific time entry.

    - Already stopped entries are returned unchanged
    """
    service = TimeEntryService(db)
    try:
        return await service.stop_entry(user_id=user_id, entry_id=entry_id)
    except TimeTrackingError as e:
        raise http_error(e)


@router.patch("/{entry_id}", response_model=TimeEntry)
async def update_entry(
    entry_id: str,
    entry_update: TimeEntryUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a time entry.

    - User must own the entry
    - The cached duration follows the new bounds
    """
    service = TimeEntryService(db)
    try:
        return await service.update_entry(
            user_id=user_id,
            entry_id=entry_id,
            entry_update=entry_update,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a time entry.

    - Hard delete (permanent)
    """
    service = TimeEntryService(db)
    try:
        return await service.delete_entry(user_id=user_id, entry_id=entry_id)
    except TimeTrackingError as e:
        raise http_error(e)
