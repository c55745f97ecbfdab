"""Instance settings model definitions."""
from typing import Optional

from pydantic import BaseModel


class InstanceSettings(BaseModel):
    """Instance-wide switches an administrator can change at runtime."""

    allow_user_signup: bool


class InstanceSettingsUpdate(BaseModel):
    """Partial settings update; unset fields keep their value."""

    allow_user_signup: Optional[bool] = None
