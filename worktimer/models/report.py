"""Report model definitions."""
from datetime import date
from typing import Optional

from pydantic import BaseModel


class ProjectTotal(BaseModel):
    """Summed cached duration of one project's entries in a window."""

    project_id: str
    total_ms: int


class ReportLine(ProjectTotal):
    """Per-project report row with presentation values."""

    project_name: Optional[str] = None
    project_color: Optional[str] = None
    hours: float
    billing: Optional[float] = None


class Report(BaseModel):
    """Per-project time report for a date range."""

    date_from: date
    date_to: date
    per_project: list[ReportLine]
    total_ms: int
    total_hours: float
    hourly_rate: Optional[float] = None
    billing: Optional[float] = None
    currency: str


class ImportResult(BaseModel):
    """Outcome of a successful CSV import."""

    imported: int
    projects_created: int
