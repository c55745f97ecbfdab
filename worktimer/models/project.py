"""Project model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{3}([0-9a-fA-F]{3})?$"


class ProjectBase(BaseModel):
    """Base project fields."""

    name: str = Field(min_length=1)
    description: str = ""
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class ProjectCreate(ProjectBase):
    """Project creation model. A random color is picked when none is given."""

    pass


class ProjectUpdate(BaseModel):
    """Project update model - all fields optional."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class Project(ProjectBase):
    """Full project model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    color: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class ProjectPage(BaseModel):
    """One page of a user's projects."""

    total: int
    page: int
    size: int
    projects: list[Project]
