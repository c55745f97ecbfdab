"""Settings router - instance switches for administrators."""
from fastapi import APIRouter, Depends

from worktimer.database import get_database
from worktimer.models.settings import InstanceSettings, InstanceSettingsUpdate
from worktimer.routers.auth import require_admin
from worktimer.services.settings_service import SettingsService
from worktimer.utils.auth import Identity


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=InstanceSettings)
async def get_settings(
    admin: Identity = Depends(require_admin),
    db=Depends(get_database),
):
    """Current instance settings."""
    return await SettingsService(db).get_settings()


@router.patch("", response_model=InstanceSettings)
async def update_settings(
    update: InstanceSettingsUpdate,
    admin: Identity = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Change instance settings.

    - Only the fields sent are saved
    - Saved values take precedence over the environment
    """
    return await SettingsService(db).update_settings(update)
