"""Timer service - business logic for time tracking."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.models.time_entry import (
    CurrentTimer,
    TimeEntry,
    TimeEntryCategory,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.services.access import ProjectAccess
from app.services.entry_rules import normalize_entry
from app.services.errors import (
    InvalidRange,
    InvalidState,
    NotFound,
    TimerAlreadyRunning,
)
from app.utils.duration import elapsed_seconds, ensure_utc, utcnow
from app.utils.ids import to_object_id

logger = logging.getLogger(__name__)


class TimerService:
    """
    Service for handling time tracking operations.

    A time entry is either open (running, no end, no duration) or closed
    (end and duration set). Open entries close exactly once; closed entries
    never reopen.
    """

    def __init__(self, db, access: Optional[ProjectAccess] = None):
        """Initialize service with database connection and access policy."""
        self.db = db
        self.time_entries = db["time_entries"]
        self.tasks = db["tasks"]
        self.access = access if access is not None else ProjectAccess(db)

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to TimeEntry model.
        """
        return TimeEntry(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            project_id=doc["project_id"],
            task_id=doc.get("task_id"),
            category=doc.get("category", TimeEntryCategory.WORK.value),
            description=doc.get("description") or "",
            start_time=ensure_utc(doc["start_time"]),
            end_time=ensure_utc(doc.get("end_time")),
            duration_minutes=doc.get("duration_minutes"),
            is_running=doc.get("is_running", False),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _require_task(self, project_id: str, task_id: str) -> dict:
        """
        Check a task exists and belongs to the given project.

        Raises:
            NotFound: If the task is missing or belongs to another project
        """
        task = await self.tasks.find_one({
            "_id": to_object_id(task_id, "Task"),
            "project_id": project_id,
        })
        if not task:
            raise NotFound("Task not found in project")
        return task

    async def _get_entry_doc(self, user_id: str, entry_id: str) -> dict:
        """Fetch a raw entry document owned by the user."""
        existing = await self.time_entries.find_one({
            "_id": to_object_id(entry_id, "Time entry"),
            "user_id": user_id,
        })
        if not existing:
            raise NotFound("Time entry not found")
        return existing

    def _closing_fields(
        self,
        existing: dict,
        end_time: Optional[datetime],
        now: datetime,
        changes: Optional[dict] = None,
    ) -> dict:
        """
        Compute the fields written when an open entry is closed.

        Without ``end_time`` the entry is closed by clearing the running
        flag and the rules substitute ``now`` as the end.

        Raises:
            InvalidRange: If the end would be before the start
        """
        proposed = {**existing, **(changes or {}), "is_running": False}
        if end_time is not None:
            proposed["end_time"] = ensure_utc(end_time)

        closed = normalize_entry(proposed, previous=existing, now=now)

        if closed["end_time"] < closed["start_time"]:
            raise InvalidRange()

        return {
            "end_time": closed["end_time"],
            "duration_minutes": closed["duration_minutes"],
            "is_running": False,
        }

    async def _close(
        self,
        existing: dict,
        end_time: Optional[datetime] = None,
        strict: bool = False,
    ) -> TimeEntry:
        """
        Close an entry, or return it unchanged if it is already closed.

        Raises:
            InvalidState: If ``strict`` and the entry is already closed
            InvalidRange: If ``end_time`` is before the entry's start
        """
        if not existing.get("is_running"):
            if strict:
                raise InvalidState("Time entry already stopped")
            return self._doc_to_entry(existing)

        now = utcnow()
        update_doc = self._closing_fields(existing, end_time, now)
        update_doc["updated_at"] = now

        # Only the request that flips is_running gets to write the end
        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": existing["_id"], "is_running": True},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )

        if updated_doc is None:
            current = await self.time_entries.find_one({"_id": existing["_id"]})
            if not current:
                raise NotFound("Time entry not found")
            if strict:
                raise InvalidState("Time entry already stopped")
            return self._doc_to_entry(current)

        logger.info(
            "Stopped timer %s for user %s (%s min)",
            existing["_id"], existing["user_id"], update_doc["duration_minutes"],
        )
        return self._doc_to_entry(updated_doc)

    async def start_timer(
        self,
        user_id: str,
        project_id: str,
        task_id: Optional[str] = None,
        description: str = "",
        category: TimeEntryCategory = TimeEntryCategory.WORK,
    ) -> TimeEntry:
        """
        Start a new timer.

        Args:
            user_id: User ID
            project_id: Project ID
            task_id: Optional task within the project
            description: Optional description
            category: Entry category

        Returns:
            Created time entry, running, with no end or duration

        Raises:
            TimerAlreadyRunning: If the user already has a running entry
            NotFound: If the project or task doesn't exist
            Unauthorized: If the user may not track time on the project
        """
        # Check if timer is already running
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "is_running": True,
        })

        if running_timer:
            raise TimerAlreadyRunning(str(running_timer["_id"]))

        await self.access.require(user_id, project_id, "track")
        if task_id:
            await self._require_task(project_id, task_id)

        now = utcnow()
        entry_doc = normalize_entry({
            "user_id": user_id,
            "project_id": project_id,
            "task_id": task_id,
            "category": TimeEntryCategory(category).value,
            "description": description,
            "start_time": now,
            "end_time": None,
            "duration_minutes": None,
            "is_running": True,
            "created_at": now,
            "updated_at": now,
        })

        try:
            result = await self.time_entries.insert_one(entry_doc)
        except DuplicateKeyError:
            # Lost the race against a start from another session
            raise TimerAlreadyRunning()

        entry_doc["_id"] = result.inserted_id
        logger.info("Started timer %s for user %s", result.inserted_id, user_id)

        return self._doc_to_entry(entry_doc)

    async def stop_entry(
        self,
        user_id: str,
        entry_id: str,
        end_time: Optional[datetime] = None,
        strict: bool = False,
    ) -> TimeEntry:
        """
        Stop a specific time entry.

        Stopping an entry that is already closed returns it unchanged,
        unless ``strict`` is set.

        No project capability is checked, so a user removed from a project
        can still close their own running timer on it.

        Args:
            user_id: User ID
            entry_id: Time entry ID
            end_time: Optional end time (defaults to now)
            strict: Raise instead of returning a closed entry unchanged

        Returns:
            The closed time entry

        Raises:
            NotFound: If the entry doesn't exist
            InvalidRange: If end_time is before the start
            InvalidState: If strict and the entry is already closed
        """
        existing = await self._get_entry_doc(user_id, entry_id)
        return await self._close(existing, end_time=end_time, strict=strict)

    async def stop_timer(
        self,
        user_id: str,
        end_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Stop the currently running timer.

        Args:
            user_id: User ID
            end_time: Optional end time (defaults to now)

        Returns:
            Updated time entry with end_time and duration

        Raises:
            NotFound: If no timer is running
            InvalidRange: If end_time is before the start
        """
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "is_running": True,
        })

        if not running_timer:
            raise NotFound("No timer running")

        return await self._close(running_timer, end_time=end_time)

    async def get_current_timer(
        self,
        user_id: str,
    ) -> Optional[CurrentTimer]:
        """
        Get the currently running timer, if any.

        Args:
            user_id: User ID

        Returns:
            Current running time entry with its elapsed seconds, or None
        """
        running_timer = await self.time_entries.find_one({
            "user_id": user_id,
            "is_running": True,
        })

        if not running_timer:
            return None

        entry = self._doc_to_entry(running_timer)
        return CurrentTimer(
            **entry.model_dump(),
            elapsed_seconds=elapsed_seconds(entry.start_time),
        )

    async def get_entry(self, user_id: str, entry_id: str) -> TimeEntry:
        """
        Get a time entry by ID.

        Raises:
            NotFound: If entry not found
        """
        return self._doc_to_entry(await self._get_entry_doc(user_id, entry_id))

    async def list_entries(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        category: Optional[TimeEntryCategory] = None,
        is_running: Optional[bool] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[TimeEntry]:
        """
        List time entries for a user with optional filtering.

        Args:
            user_id: User ID
            project_id: Optional project filter
            task_id: Optional task filter
            category: Optional category filter
            is_running: Optional running/closed filter
            start_date: Optional lower bound on start_time
            end_date: Optional upper bound on start_time

        Returns:
            List of time entries, most recent first
        """
        query = {
            "user_id": user_id,
        }

        if project_id:
            query["project_id"] = project_id
        if task_id:
            query["task_id"] = task_id
        if category:
            query["category"] = TimeEntryCategory(category).value
        if is_running is not None:
            query["is_running"] = is_running

        if start_date or end_date:
            query["start_time"] = {}
            if start_date:
                query["start_time"]["$gte"] = ensure_utc(start_date)
            if end_date:
                query["start_time"]["$lte"] = ensure_utc(end_date)

        cursor = self.time_entries.find(query).sort("start_time", -1)
        entry_docs = await cursor.to_list(length=None)

        return [self._doc_to_entry(doc) for doc in entry_docs]

    async def create_entry(
        self,
        user_id: str,
        entry_create: TimeEntryCreate,
    ) -> TimeEntry:
        """
        Record a manual time entry, created already closed.

        The end is either given directly or derived from start plus
        ``duration_minutes``; the stored duration is always recomputed.

        Args:
            user_id: User ID
            entry_create: Time entry creation data

        Returns:
            Created time entry

        Raises:
            InvalidRange: If end_time is before start_time
            NotFound: If the project or task doesn't exist
            Unauthorized: If the user may not track time on the project
        """
        start_time = ensure_utc(entry_create.start_time)
        if entry_create.end_time is not None:
            end_time = ensure_utc(entry_create.end_time)
        elif entry_create.duration_minutes is not None:
            try:
                end_time = start_time + timedelta(minutes=entry_create.duration_minutes)
            except OverflowError:
                raise InvalidRange("Duration is too long")
        else:
            raise InvalidRange("End time or duration is required")

        if end_time < start_time:
            raise InvalidRange()

        await self.access.require(user_id, entry_create.project_id, "track")
        if entry_create.task_id:
            await self._require_task(entry_create.project_id, entry_create.task_id)

        now = utcnow()
        entry_doc = normalize_entry({
            "user_id": user_id,
            "project_id": entry_create.project_id,
            "task_id": entry_create.task_id,
            "category": entry_create.category.value,
            "description": entry_create.description,
            "start_time": start_time,
            "end_time": end_time,
            "is_running": False,
            "created_at": now,
            "updated_at": now,
        })

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id
        logger.info("Recorded manual entry %s for user %s", result.inserted_id, user_id)

        return self._doc_to_entry(entry_doc)

    async def update_entry(
        self,
        user_id: str,
        entry_id: str,
        entry_update: TimeEntryUpdate,
    ) -> TimeEntry:
        """
        Update a time entry.

        Description, category and task can always be edited. Setting
        ``is_running`` to false or supplying ``end_time`` closes an open
        entry exactly like a stop. Start and end of a closed entry are fixed.

        Args:
            user_id: User ID
            entry_id: Time entry ID
            entry_update: Update data

        Returns:
            Updated time entry

        Raises:
            NotFound: If entry or task not found
            InvalidState: If the update would reopen or re-time a closed entry
            InvalidRange: If the new times are out of order
            Unauthorized: If the user may no longer track time on the project
        """
        existing = await self._get_entry_doc(user_id, entry_id)
        await self.access.require(user_id, existing["project_id"], "track")
        is_running = existing.get("is_running", False)
        now = utcnow()

        update_doc = {}

        if entry_update.description is not None:
            update_doc["description"] = entry_update.description
        if entry_update.category is not None:
            update_doc["category"] = entry_update.category.value
        if "task_id" in entry_update.model_fields_set:
            if entry_update.task_id:
                await self._require_task(existing["project_id"], entry_update.task_id)
            update_doc["task_id"] = entry_update.task_id or None

        if not is_running:
            if entry_update.is_running:
                raise InvalidState("Stopped time entries cannot be restarted")
            if entry_update.start_time is not None or entry_update.end_time is not None:
                raise InvalidState("Stopped time entries cannot change start or end time")
        else:
            if entry_update.is_running and entry_update.end_time is not None:
                raise InvalidState("A running time entry cannot have an end time")
            if entry_update.start_time is not None:
                start_time = ensure_utc(entry_update.start_time)
                if start_time > now:
                    raise InvalidRange("Start time cannot be in the future")
                update_doc["start_time"] = start_time

        closing = is_running and (
            entry_update.is_running is False or entry_update.end_time is not None
        )
        if closing:
            update_doc.update(
                self._closing_fields(existing, entry_update.end_time, now, changes=update_doc)
            )

        update_doc["updated_at"] = now

        query = {"_id": existing["_id"], "user_id": user_id}
        if closing:
            query["is_running"] = True

        updated_doc = await self.time_entries.find_one_and_update(
            query,
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )

        if updated_doc is None:
            raise InvalidState("Time entry already stopped")

        return self._doc_to_entry(updated_doc)

    async def delete_entry(
        self,
        user_id: str,
        entry_id: str,
    ) -> dict:
        """
        Delete a time entry.

        Args:
            user_id: User ID
            entry_id: Time entry ID

        Returns:
            Dictionary with deleted_count

        Raises:
            NotFound: If entry not found
            Unauthorized: If the user may no longer track time on the project
        """
        existing = await self._get_entry_doc(user_id, entry_id)
        await self.access.require(user_id, existing["project_id"], "track")

        # Hard delete for time entries
        result = await self.time_entries.delete_one({
            "_id": existing["_id"],
            "user_id": user_id,
        })

        return {"deleted_count": result.deleted_count}
