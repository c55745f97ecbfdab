"""Report service - per-project time and billing reports."""
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from bson import ObjectId

from worktimer.config import settings
from worktimer.exceptions import ValidationError
from worktimer.models.report import Report, ReportLine
from worktimer.services.aggregation import local_midnight_utc
from worktimer.services.time_entry_service import TimeEntryService
from worktimer.utils.duration import ms_to_hours, round_hours


def report_window(
    date_from: date,
    date_to: date,
    tz: tzinfo = timezone.utc,
) -> tuple[datetime, datetime]:
    """
    Expand a date range to the naive UTC instants covering whole local days.

    Raises:
        ValidationError: If date_from is after date_to
    """
    if date_from > date_to:
        raise ValidationError("dateFrom must not be after dateTo", field="date_from")
    start = local_midnight_utc(date_from, tz)
    end = local_midnight_utc(date_to + timedelta(days=1), tz) - timedelta(milliseconds=1)
    return start, end


def billing_amount(duration_ms: int, hourly_rate: Optional[float]) -> Optional[float]:
    """Hours times rate, rounded to cents for display."""
    if hourly_rate is None:
        return None
    return round(ms_to_hours(duration_ms) * hourly_rate, 2)


class ReportService:
    """Service building time reports."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.users = db["users"]
        self.entries = TimeEntryService(db)

    async def _project_labels(self, user_id: str, project_ids: list[str]) -> dict[str, dict]:
        object_ids = [ObjectId(pid) for pid in project_ids if ObjectId.is_valid(pid)]
        if not object_ids:
            return {}
        cursor = self.projects.find({"_id": {"$in": object_ids}, "user_id": user_id})
        return {str(doc["_id"]): doc for doc in await cursor.to_list(length=None)}

    async def build_report(
        self,
        user_id: str,
        date_from: date,
        date_to: date,
        hourly_rate: Optional[float] = None,
        tz: tzinfo = timezone.utc,
    ) -> Report:
        """
        Build the per-project report for a date range.

        Durations are backfilled, summed per project over entries started in
        [date_from, date_to] (whole days) and, with an hourly rate, billed.
        Without an explicit rate the user's default rate applies.

        Args:
            user_id: User ID
            date_from: First day of the range
            date_to: Last day of the range (inclusive)
            hourly_rate: Optional billing rate
            tz: Timezone whose calendar days bound the range

        Returns:
            Report with per-project lines and grand totals

        Raises:
            ValidationError: If date_from > date_to or the rate is negative
        """
        start, end = report_window(date_from, date_to, tz)
        if hourly_rate is not None and hourly_rate < 0:
            raise ValidationError("Hourly rate cannot be negative", field="hourly_rate")

        user_doc = None
        if ObjectId.is_valid(user_id):
            user_doc = await self.users.find_one({"_id": ObjectId(user_id)})
        if hourly_rate is None and user_doc:
            hourly_rate = user_doc.get("default_hourly_rate")
        currency = (user_doc or {}).get("currency") or settings.default_currency

        totals = await self.entries.project_totals(user_id, start, end)
        labels = await self._project_labels(user_id, [t.project_id for t in totals])

        lines = []
        for total in totals:
            label = labels.get(total.project_id, {})
            lines.append(ReportLine(
                project_id=total.project_id,
                total_ms=total.total_ms,
                project_name=label.get("name"),
                project_color=label.get("color"),
                hours=round_hours(total.total_ms),
                billing=billing_amount(total.total_ms, hourly_rate),
            ))

        grand_total = sum(total.total_ms for total in totals)

        return Report(
            date_from=date_from,
            date_to=date_to,
            per_project=lines,
            total_ms=grand_total,
            total_hours=round_hours(grand_total),
            hourly_rate=hourly_rate,
            billing=billing_amount(grand_total, hourly_rate),
            currency=currency,
        )


def current_month(today: date) -> tuple[date, date]:
    """First and last day of the month containing today."""
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)
