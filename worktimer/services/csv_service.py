"""CSV export and import of time entries."""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pymongo import ASCENDING

from worktimer.exceptions import CsvImportError, ValidationError
from worktimer.models.report import ImportResult
from worktimer.services.project_service import ProjectService
from worktimer.services.time_entry_service import TimeEntryService
from worktimer.utils.duration import calculate_duration_ms, to_utc_naive, utc_now

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["id", "description", "startTime", "endTime", "duration", "createdAt", "project"]
REQUIRED_IMPORT_COLUMNS = ["description", "startTime", "endTime", "project"]


def format_timestamp(value: Optional[datetime]) -> str:
    """
    ISO-8601 UTC with millisecond precision, or "" for no value.

    Examples:
        >>> format_timestamp(datetime(2024, 1, 1, 9, 30))
        '2024-01-01T09:30:00.000Z'
    """
    if value is None:
        return ""
    return to_utc_naive(value).isoformat(timespec="milliseconds") + "Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into naive UTC.

    Raises:
        ValueError: If value is not ISO-8601
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(text))


@dataclass
class ParsedRow:
    """An import row that passed validation."""

    description: str
    start_time: datetime
    end_time: Optional[datetime]
    project: str


def parse_import(text: str) -> list[ParsedRow]:
    """
    Parse and validate a whole CSV document.

    Nothing is returned unless every row is valid.

    Raises:
        CsvImportError: On missing columns or any malformed row
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise CsvImportError("The file is empty")

    columns = [name.strip() for name in reader.fieldnames]
    missing = [name for name in REQUIRED_IMPORT_COLUMNS if name not in columns]
    if missing:
        raise CsvImportError(f"Missing required columns: {', '.join(missing)}")
    reader.fieldnames = columns

    rows = []
    for number, record in enumerate(reader, start=1):
        if not any((value or "").strip() for value in record.values() if isinstance(value, str)):
            continue

        project = (record.get("project") or "").strip()
        if not project:
            raise CsvImportError("project is empty", row=number)

        try:
            start_time = parse_timestamp(record.get("startTime") or "")
        except ValueError:
            raise CsvImportError(f"invalid startTime '{record.get('startTime')}'", row=number)

        end_text = (record.get("endTime") or "").strip()
        try:
            end_time = parse_timestamp(end_text) if end_text else None
        except ValueError:
            raise CsvImportError(f"invalid endTime '{end_text}'", row=number)

        if end_time is not None and start_time > end_time:
            raise CsvImportError("startTime must be before endTime", row=number)

        rows.append(ParsedRow(
            description=record.get("description") or "",
            start_time=start_time,
            end_time=end_time,
            project=project,
        ))

    if sum(1 for row in rows if row.end_time is None) > 1:
        raise CsvImportError("At most one running entry (empty endTime) can be imported")

    return rows


class CsvService:
    """Service for moving a user's time entries in and out as CSV."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_entries = db["time_entries"]
        self.projects = db["projects"]
        self.project_service = ProjectService(db)
        self.entry_service = TimeEntryService(db)

    async def export_csv(self, user_id: str) -> str:
        """
        Serialize every entry of the user, oldest first.

        Returns:
            CSV text with a header row
        """
        project_docs = await self.projects.find({"user_id": user_id}).to_list(length=None)
        names = {str(doc["_id"]): doc["name"] for doc in project_docs}

        cursor = self.time_entries.find({"user_id": user_id}, sort=[("start_time", ASCENDING)])
        entry_docs = await cursor.to_list(length=None)

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(EXPORT_COLUMNS)
        for doc in entry_docs:
            duration = doc.get("duration")
            writer.writerow([
                str(doc["_id"]),
                doc.get("description", ""),
                format_timestamp(doc["start_time"]),
                format_timestamp(doc.get("end_time")),
                "" if duration is None else duration,
                format_timestamp(doc.get("created_at")),
                names.get(doc["project_id"], ""),
            ])

        return output.getvalue()

    async def import_csv(self, user_id: str, text: str) -> ImportResult:
        """
        Import entries, creating projects referenced by unknown names.

        The file is validated completely before anything is written. A row
        with an empty endTime becomes the running entry, so the current one
        is stopped first.

        Args:
            user_id: User ID receiving the entries
            text: CSV document

        Returns:
            Number of entries imported and projects created

        Raises:
            CsvImportError: If the file is malformed; nothing is written
        """
        rows = parse_import(text)
        if not rows:
            return ImportResult(imported=0, projects_created=0)

        project_ids: dict[str, str] = {}
        created_count = 0
        for name in dict.fromkeys(row.project for row in rows):
            try:
                project, created = await self.project_service.get_or_create_by_name(user_id, name)
            except ValidationError as e:
                raise CsvImportError(e.message)
            project_ids[name] = project.id
            created_count += int(created)

        if any(row.end_time is None for row in rows):
            await self.entry_service.close_open_entries(user_id)

        now = utc_now()
        docs = [
            {
                "user_id": user_id,
                "project_id": project_ids[row.project],
                "description": row.description,
                "start_time": row.start_time,
                "end_time": row.end_time,
                "duration": (
                    calculate_duration_ms(row.start_time, row.end_time)
                    if row.end_time else None
                ),
                "created_at": now,
                "updated_at": now,
            }
            for row in rows
        ]
        await self.time_entries.insert_many(docs)

        logger.info(
            "Imported %d time entries (%d new projects) for user %s",
            len(docs), created_count, user_id,
        )
        return ImportResult(imported=len(docs), projects_created=created_count)
