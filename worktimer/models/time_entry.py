"""Time entry model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TimeEntryBase(BaseModel):
    """Base time entry fields."""

    project_id: str
    description: str
    start_time: datetime
    end_time: Optional[datetime] = None


class TimeEntryCreate(TimeEntryBase):
    """Time entry creation model.

    Leaving end_time empty starts a running entry; giving one logs a
    finished entry.
    """

    pass


class TimeEntryUpdate(BaseModel):
    """Time entry update model - all fields optional."""

    description: Optional[str] = None
    project_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    reopen: bool = False  # clear end_time and make the entry running again


class TimeEntry(TimeEntryBase):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    duration: Optional[int] = None  # cached milliseconds
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}

    @property
    def is_running(self) -> bool:
        return self.end_time is None


class EntryOrderField(str, Enum):
    """Fields a time entry listing may be sorted by."""

    START_TIME = "start_time"
    END_TIME = "end_time"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class DayTotal(BaseModel):
    """Entries started on one calendar day and their summed duration."""

    day: date
    total_ms: int
    entries: list[TimeEntry]


class TimeEntryPage(BaseModel):
    """One page of time entries plus their per-day grouping."""

    total: int
    page: int
    size: int
    entries: list[TimeEntry]
    days: list[DayTotal] = []


class EntrySummary(BaseModel):
    """Rolling totals shown above the entry list."""

    today_ms: int
    week_ms: int
    month_ms: int
    running: Optional[TimeEntry] = None
    running_elapsed_ms: Optional[int] = None


class BackfillResult(BaseModel):
    updated: int
