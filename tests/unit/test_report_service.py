"""Tests for ReportService."""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

from bson import ObjectId

from worktimer.exceptions import ValidationError
from worktimer.models.report import ProjectTotal
from worktimer.services.report_service import (
    ReportService,
    billing_amount,
    current_month,
    report_window,
)


class TestReportWindow:
    def test_covers_whole_days(self):
        start, end = report_window(date(2024, 1, 1), date(2024, 1, 31))

        assert start == datetime(2024, 1, 1)
        assert end == datetime(2024, 1, 31, 23, 59, 59, 999_000)

    def test_single_day(self):
        start, end = report_window(date(2024, 1, 5), date(2024, 1, 5))

        assert start == datetime(2024, 1, 5)
        assert end.date() == date(2024, 1, 5)

    def test_local_days(self):
        start, _ = report_window(date(2024, 7, 1), date(2024, 7, 1), ZoneInfo("Europe/Rome"))

        assert start == datetime(2024, 6, 30, 22, 0)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError, match="dateFrom must not be after dateTo"):
            report_window(date(2024, 2, 1), date(2024, 1, 1))


class TestBilling:
    def test_no_rate_no_billing(self):
        assert billing_amount(3_600_000, None) is None

    def test_rounded_to_cents(self):
        # 20 minutes at 50/h
        assert billing_amount(1_200_000, 50) == 16.67

    def test_current_month(self):
        assert current_month(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert current_month(date(2024, 12, 31)) == (date(2024, 12, 1), date(2024, 12, 31))


class TestDefaultRange:
    """Tests for the month used when a report has no dates."""

    def test_month_follows_display_timezone(self, monkeypatch):
        from worktimer.config import settings
        from worktimer.routers import reports

        # 22:00 UTC on Jan 31st is already Feb 1st in Auckland
        monkeypatch.setattr(reports, "utc_now", lambda: datetime(2024, 1, 31, 22, 0))
        monkeypatch.setattr(settings, "display_timezone", "Pacific/Auckland")

        assert reports.resolve_range(None, None) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_utc_month(self, monkeypatch):
        from worktimer.config import settings
        from worktimer.routers import reports

        monkeypatch.setattr(reports, "utc_now", lambda: datetime(2024, 1, 31, 22, 0))
        monkeypatch.setattr(settings, "display_timezone", "UTC")

        assert reports.resolve_range(None, None) == (date(2024, 1, 1), date(2024, 1, 31))

    def test_given_bounds_kept(self, monkeypatch):
        from worktimer.config import settings
        from worktimer.routers import reports

        monkeypatch.setattr(reports, "utc_now", lambda: datetime(2024, 1, 31, 22, 0))
        monkeypatch.setattr(settings, "display_timezone", "UTC")

        assert reports.resolve_range(date(2023, 5, 2), None) == (date(2023, 5, 2), date(2024, 1, 31))


def report_service(totals, user_doc=None, project_docs=()):
    """ReportService over mocked collections with fixed project totals."""
    mock_users = AsyncMock()
    mock_users.find_one.return_value = user_doc
    mock_projects = MagicMock()
    mock_projects.find.return_value = MagicMock(to_list=AsyncMock(return_value=list(project_docs)))

    mock_db = MagicMock()
    mock_db.__getitem__.side_effect = lambda key: {
        "users": mock_users,
        "projects": mock_projects,
        "time_entries": MagicMock(),
    }[key]

    service = ReportService(mock_db)
    service.entries.project_totals = AsyncMock(return_value=totals)
    return service


@pytest.mark.asyncio
class TestBuildReport:
    """Tests for building reports."""

    async def test_per_project_totals_add_up(self):
        """One hour on A and two on B give three hours overall."""
        project_a, project_b = ObjectId(), ObjectId()
        service = report_service(
            [
                ProjectTotal(project_id=str(project_a), total_ms=3_600_000),
                ProjectTotal(project_id=str(project_b), total_ms=7_200_000),
            ],
            project_docs=[
                {"_id": project_a, "name": "A", "color": "#aa0000"},
                {"_id": project_b, "name": "B", "color": "#00bb00"},
            ],
        )

        report = await service.build_report(str(ObjectId()), date(2024, 1, 1), date(2024, 1, 31))

        assert report.total_ms == 10_800_000
        assert report.total_ms == sum(line.total_ms for line in report.per_project)
        assert report.total_hours == 3.0
        assert [line.project_name for line in report.per_project] == ["A", "B"]
        assert report.per_project[1].hours == 2.0
        assert report.billing is None

    async def test_billing_with_explicit_rate(self):
        service = report_service([ProjectTotal(project_id="p1", total_ms=5_400_000)])

        report = await service.build_report(
            str(ObjectId()), date(2024, 1, 1), date(2024, 1, 31), hourly_rate=40
        )

        assert report.billing == 60.0
        assert report.per_project[0].billing == 60.0
        assert report.hourly_rate == 40

    async def test_user_default_rate_and_currency(self):
        service = report_service(
            [ProjectTotal(project_id="p1", total_ms=3_600_000)],
            user_doc={"default_hourly_rate": 25.0, "currency": "$"},
        )

        report = await service.build_report(str(ObjectId()), date(2024, 1, 1), date(2024, 1, 31))

        assert report.billing == 25.0
        assert report.currency == "$"

    async def test_default_currency(self):
        from worktimer.config import settings

        service = report_service([])

        report = await service.build_report(str(ObjectId()), date(2024, 1, 1), date(2024, 1, 31))

        assert report.total_ms == 0
        assert report.per_project == []
        assert report.currency == settings.default_currency

    async def test_negative_rate_rejected(self):
        service = report_service([])

        with pytest.raises(ValidationError, match="negative"):
            await service.build_report(
                str(ObjectId()), date(2024, 1, 1), date(2024, 1, 31), hourly_rate=-1
            )

    async def test_window_passed_to_totals(self):
        service = report_service([])
        user_id = str(ObjectId())

        await service.build_report(user_id, date(2024, 3, 1), date(2024, 3, 2))

        service.entries.project_totals.assert_called_once_with(
            user_id,
            datetime(2024, 3, 1),
            datetime(2024, 3, 2, 23, 59, 59, 999_000),
        )
