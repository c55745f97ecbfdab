"""Time entry service - business logic for time tracking."""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from worktimer.exceptions import NotFoundError, ValidationError
from worktimer.models.report import ProjectTotal
from worktimer.models.time_entry import (
    EntryOrderField,
    EntrySummary,
    SortOrder,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryPage,
    TimeEntryUpdate,
)
from worktimer.services import aggregation
from worktimer.utils.duration import (
    calculate_duration_ms,
    elapsed_ms,
    to_utc_naive,
    utc_now,
    validate_bounds,
)
from worktimer.utils.ids import parse_object_id

logger = logging.getLogger(__name__)


class TimeEntryService:
    """Service for handling time tracking operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_entries = db["time_entries"]
        self.projects = db["projects"]

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to TimeEntry model.
        """
        return TimeEntry(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            project_id=doc["project_id"],
            description=doc.get("description", ""),
            start_time=doc["start_time"],
            end_time=doc.get("end_time"),
            duration=doc.get("duration"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _require_project(self, user_id: str, project_id: str) -> None:
        """Raise NotFoundError unless the project belongs to the user."""
        project = await self.projects.find_one({
            "_id": parse_object_id(project_id, "Project"),
            "user_id": user_id,
        })
        if not project:
            raise NotFoundError("Project not found")

    async def _find_owned(self, user_id: str, entry_id: str) -> dict:
        doc = await self.time_entries.find_one({
            "_id": parse_object_id(entry_id, "Time entry"),
            "user_id": user_id,
        })
        if not doc:
            raise NotFoundError("Time entry not found")
        return doc

    async def backfill_durations(self, user_id: str) -> int:
        """
        Cache the duration of every closed entry that lacks one.

        Running it again right away finds nothing left to update.

        Args:
            user_id: User ID

        Returns:
            Number of entries updated
        """
        cursor = self.time_entries.find({
            "user_id": user_id,
            "end_time": {"$ne": None},
            "duration": None,
        })
        stale = await cursor.to_list(length=None)

        for doc in stale:
            logger.warning(
                "Time entry %s is closed but has no cached duration", doc["_id"]
            )
            await self.time_entries.update_one(
                {"_id": doc["_id"]},
                {"$set": {
                    "duration": calculate_duration_ms(doc["start_time"], doc["end_time"]),
                }},
            )

        if stale:
            logger.info("Backfilled %d durations for user %s", len(stale), user_id)
        return len(stale)

    async def close_open_entries(self, user_id: str, now: Optional[datetime] = None) -> int:
        """
        Stop every running entry of the user at now.

        Returns:
            Number of entries closed
        """
        now = to_utc_naive(now) or utc_now()
        cursor = self.time_entries.find({"user_id": user_id, "end_time": None})
        running = await cursor.to_list(length=None)

        for doc in running:
            # an entry scheduled to start in the future closes as empty
            end_time = max(now, doc["start_time"])
            await self.time_entries.update_one(
                {"_id": doc["_id"]},
                {"$set": {
                    "end_time": end_time,
                    "duration": calculate_duration_ms(doc["start_time"], end_time),
                    "updated_at": utc_now(),
                }},
            )
            logger.info("Closed running time entry %s for user %s", doc["_id"], user_id)

        return len(running)

    async def start_new_entry(
        self,
        user_id: str,
        entry_create: TimeEntryCreate,
        now: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Create a time entry, stopping whatever was running first.

        Args:
            user_id: User ID
            entry_create: Time entry creation data
            now: Instant at which running entries are stopped (defaults to now)

        Returns:
            Created time entry

        Raises:
            ValidationError: If the description is empty or start > end
            NotFoundError: If the project doesn't belong to the user
        """
        if not entry_create.description.strip():
            raise ValidationError("Description is required", field="description")
        if not entry_create.project_id:
            raise ValidationError("projectId is required", field="project_id")

        start_time = to_utc_naive(entry_create.start_time)
        end_time = to_utc_naive(entry_create.end_time)
        validate_bounds(start_time, end_time)

        await self._require_project(user_id, entry_create.project_id)

        # Closing must complete before the new row is inserted
        await self.backfill_durations(user_id)
        await self.close_open_entries(user_id, now=now)

        created = utc_now()
        entry_doc = {
            "user_id": user_id,
            "project_id": entry_create.project_id,
            "description": entry_create.description,
            "start_time": start_time,
            "end_time": end_time,
            "duration": calculate_duration_ms(start_time, end_time) if end_time else None,
            "created_at": created,
            "updated_at": created,
        }

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        return self._doc_to_entry(entry_doc)

    async def stop_entry(
        self,
        user_id: str,
        entry_id: str,
        now: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Stop a running time entry.

        Stopping an entry that already has an end time returns it unchanged.
        An entry whose start lies after now stops with zero duration.

        Args:
            user_id: User ID
            entry_id: Time entry ID
            now: Optional end time (defaults to now)

        Returns:
            Updated time entry with end_time and duration

        Raises:
            NotFoundError: If the entry doesn't exist or isn't the user's
        """
        doc = await self._find_owned(user_id, entry_id)
        if doc.get("end_time") is not None:
            return self._doc_to_entry(doc)

        end_time = max(to_utc_naive(now) or utc_now(), doc["start_time"])

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": doc["_id"], "user_id": user_id},
            {"$set": {
                "end_time": end_time,
                "duration": calculate_duration_ms(doc["start_time"], end_time),
                "updated_at": utc_now(),
            }},
            return_document=ReturnDocument.AFTER,
        )

        return self._doc_to_entry(updated_doc)

    async def stop_current(self, user_id: str, now: Optional[datetime] = None) -> TimeEntry:
        """
        Stop the user's running entry.

        Raises:
            NotFoundError: If no entry is running
        """
        current = await self.get_current_entry(user_id)
        if current is None:
            raise NotFoundError("No time entry running")
        return await self.stop_entry(user_id, current.id, now=now)

    async def get_current_entry(self, user_id: str) -> Optional[TimeEntry]:
        """
        Get the running time entry, if any.
        """
        running = await self.time_entries.find_one(
            {"user_id": user_id, "end_time": None},
            sort=[("start_time", DESCENDING)],
        )

        if not running:
            return None

        return self._doc_to_entry(running)

    async def get_entry(self, user_id: str, entry_id: str) -> TimeEntry:
        """
        Get a time entry owned by the user.

        Raises:
            NotFoundError: If entry not found
        """
        return self._doc_to_entry(await self._find_owned(user_id, entry_id))

    async def list_entries(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        page: int = 1,
        size: int = 25,
        order_by: EntryOrderField = EntryOrderField.START_TIME,
        order: SortOrder = SortOrder.DESC,
    ) -> TimeEntryPage:
        """
        List one page of a user's time entries.

        Args:
            user_id: User ID
            project_id: Optional project filter
            page: 1-based page number
            size: Page size
            order_by: Sort field
            order: Sort direction

        Returns:
            Page of time entries with the total count
        """
        query = {"user_id": user_id}
        if project_id:
            query["project_id"] = project_id

        total = await self.time_entries.count_documents(query)

        direction = ASCENDING if order == SortOrder.ASC else DESCENDING
        cursor = self.time_entries.find(
            query,
            sort=[(EntryOrderField(order_by).value, direction)],
            skip=(page - 1) * size,
            limit=size,
        )
        entry_docs = await cursor.to_list(length=None)

        return TimeEntryPage(
            total=total,
            page=page,
            size=size,
            entries=[self._doc_to_entry(doc) for doc in entry_docs],
        )

    async def entries_started_between(
        self,
        user_id: str,
        date_from: datetime,
        date_to: Optional[datetime] = None,
    ) -> list[TimeEntry]:
        """Entries whose start time falls inside the window, oldest first."""
        window = {"$gte": to_utc_naive(date_from)}
        if date_to is not None:
            window["$lte"] = to_utc_naive(date_to)

        cursor = self.time_entries.find(
            {"user_id": user_id, "start_time": window},
            sort=[("start_time", ASCENDING)],
        )
        return [self._doc_to_entry(doc) for doc in await cursor.to_list(length=None)]

    async def update_entry(
        self,
        user_id: str,
        entry_id: str,
        entry_update: TimeEntryUpdate,
    ) -> TimeEntry:
        """
        Update a time entry.

        The cached duration follows the new bounds: recomputed when the
        entry stays closed, cleared when it is reopened.

        Args:
            user_id: User ID
            entry_id: Time entry ID
            entry_update: Update data

        Returns:
            Updated time entry

        Raises:
            NotFoundError: If the entry or the new project isn't the user's
            ValidationError: If the resulting start > end
        """
        existing = await self._find_owned(user_id, entry_id)

        update_doc = {
            "updated_at": utc_now(),
        }

        if entry_update.description is not None:
            if not entry_update.description.strip():
                raise ValidationError("Description is required", field="description")
            update_doc["description"] = entry_update.description
        if entry_update.project_id is not None:
            await self._require_project(user_id, entry_update.project_id)
            update_doc["project_id"] = entry_update.project_id

        start_time = to_utc_naive(entry_update.start_time) or existing["start_time"]
        if entry_update.reopen:
            end_time = None
        else:
            end_time = to_utc_naive(entry_update.end_time) or existing.get("end_time")
        validate_bounds(start_time, end_time)

        update_doc["start_time"] = start_time
        update_doc["end_time"] = end_time
        update_doc["duration"] = (
            calculate_duration_ms(start_time, end_time) if end_time else None
        )

        if end_time is None and existing.get("end_time") is not None:
            await self.close_open_entries(user_id)

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": existing["_id"], "user_id": user_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )

        return self._doc_to_entry(updated_doc)

    async def delete_entry(
        self,
        user_id: str,
        entry_id: str,
    ) -> dict:
        """
        Delete a time entry.

        Returns:
            Dictionary with deleted_count

        Raises:
            NotFoundError: If entry not found
        """
        existing = await self._find_owned(user_id, entry_id)

        # Hard delete
        result = await self.time_entries.delete_one({
            "_id": existing["_id"],
            "user_id": user_id,
        })

        return {"deleted_count": result.deleted_count}

    async def project_totals(
        self,
        user_id: str,
        date_from: datetime,
        date_to: datetime,
    ) -> list[ProjectTotal]:
        """
        Sum cached durations per project for entries started in the window.

        Durations are backfilled first so closed entries are never missed.

        Args:
            user_id: User ID
            date_from: Inclusive window start
            date_to: Inclusive window end

        Returns:
            Totals sorted by project id
        """
        await self.backfill_durations(user_id)

        pipeline = [
            {"$match": {
                "user_id": user_id,
                "start_time": {
                    "$gte": to_utc_naive(date_from),
                    "$lte": to_utc_naive(date_to),
                },
                "duration": {"$ne": None},
            }},
            {"$group": {
                "_id": "$project_id",
                "total": {"$sum": "$duration"},
            }},
            {"$sort": {"_id": 1}},
        ]
        rows = await self.time_entries.aggregate(pipeline).to_list(length=None)

        return [
            ProjectTotal(project_id=str(row["_id"]), total_ms=int(row["total"]))
            for row in rows
        ]

    async def summary(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz=None,
    ) -> EntrySummary:
        """
        Today, week-to-date and month-to-date totals plus the running entry.

        The rolling totals only count entries that ended by now.
        """
        now = to_utc_naive(now) or utc_now()
        tz = tz or timezone.utc

        since = min(
            aggregation.start_of_week_window(now, tz),
            aggregation.start_of_month(now, tz),
        )
        entries = await self.entries_started_between(user_id, since)
        running = await self.get_current_entry(user_id)

        return EntrySummary(
            today_ms=aggregation.today_ms(entries, now, tz),
            week_ms=aggregation.week_to_date_ms(entries, now, tz),
            month_ms=aggregation.month_to_date_ms(entries, now, tz),
            running=running,
            running_elapsed_ms=(
                elapsed_ms(running.start_time, None, now) if running else None
            ),
        )
