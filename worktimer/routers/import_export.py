"""Import/export endpoints - CSV transfer of time entries."""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response

from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError
from worktimer.models.report import ImportResult
from worktimer.routers.auth import get_current_user_id
from worktimer.routers.errors import http_error
from worktimer.services.csv_service import CsvService
from worktimer.utils.duration import utc_now


router = APIRouter(prefix="/import-export", tags=["import-export"])


@router.get("/export.csv")
async def export_csv(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Download every time entry as CSV."""
    service = CsvService(db)
    body = await service.export_csv(user_id)
    timestamp = utc_now().strftime("%Y%m%d%H%M%S")

    return Response(
        content=body,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="work-timer-export-{timestamp}.csv"',
        },
    )


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_csv(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Import time entries from a CSV upload.

    - Required columns: description, startTime, endTime, project
    - Unknown projects are created
    - Any invalid row rejects the whole file (400)
    """
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be UTF-8 encoded")

    service = CsvService(db)
    try:
        return await service.import_csv(user_id, text)
    except TimeTrackingError as e:
        raise http_error(e)
