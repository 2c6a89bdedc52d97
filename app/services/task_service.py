"""Task service - business logic for tasks within a project."""
import logging
from typing import Optional

from pymongo import ReturnDocument

from app.models.task import Task, TaskCreate, TaskStatus, TaskUpdate
from app.services.access import ProjectAccess
from app.services.errors import NotFound
from app.utils.duration import ensure_utc, utcnow
from app.utils.ids import to_object_id

logger = logging.getLogger(__name__)


class TaskService:
    """Service for handling task operations."""

    def __init__(self, db, access: Optional[ProjectAccess] = None):
        """Initialize service with database connection."""
        self.db = db
        self.tasks = db["tasks"]
        self.time_entries = db["time_entries"]
        self.access = access if access is not None else ProjectAccess(db)

    def _doc_to_task(self, doc: dict) -> Task:
        """
        Convert database document to Task model.
        """
        return Task(
            _id=str(doc["_id"]),
            project_id=doc["project_id"],
            title=doc["title"],
            description=doc.get("description"),
            status=doc.get("status", TaskStatus.TODO.value),
            assigned_to=doc.get("assigned_to"),
            deadline=ensure_utc(doc.get("deadline")),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _get_task_doc(self, task_id: str) -> dict:
        task_doc = await self.tasks.find_one({"_id": to_object_id(task_id, "Task")})
        if not task_doc:
            raise NotFound("Task not found")
        return task_doc

    async def create_task(
        self,
        user_id: str,
        project_id: str,
        task_create: TaskCreate,
    ) -> Task:
        """
        Create a task in a project.

        Any member who can track time on the project may add tasks.

        Raises:
            NotFound: If project not found
            Unauthorized: If the user is a viewer
        """
        project = await self.access.require(user_id, project_id, "track")

        now = utcnow()
        task_doc = {
            "project_id": str(project["_id"]),
            "title": task_create.title,
            "description": task_create.description,
            "status": task_create.status.value,
            "assigned_to": task_create.assigned_to,
            "deadline": ensure_utc(task_create.deadline),
            "created_at": now,
            "updated_at": now,
        }

        result = await self.tasks.insert_one(task_doc)
        task_doc["_id"] = result.inserted_id
        logger.info("Created task %s in project %s", result.inserted_id, project_id)

        return self._doc_to_task(task_doc)

    async def list_tasks(
        self,
        user_id: str,
        project_id: str,
        status: Optional[TaskStatus] = None,
    ) -> list[Task]:
        """
        List tasks of a project, newest first.

        Args:
            user_id: User ID
            project_id: Project ID
            status: Optional status filter
        """
        project = await self.access.require(user_id, project_id, "view")

        query = {"project_id": str(project["_id"])}
        if status:
            query["status"] = TaskStatus(status).value

        cursor = self.tasks.find(query).sort("created_at", -1)
        task_docs = await cursor.to_list(length=None)

        return [self._doc_to_task(doc) for doc in task_docs]

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """
        Get a task visible to the user.

        Raises:
            NotFound: If task or its project is not visible
        """
        task_doc = await self._get_task_doc(task_id)
        await self.access.require(user_id, task_doc["project_id"], "view")
        return self._doc_to_task(task_doc)

    async def update_task(
        self,
        user_id: str,
        task_id: str,
        task_update: TaskUpdate,
    ) -> Task:
        """
        Update a task.

        Raises:
            NotFound: If task not found
            Unauthorized: If the user is a viewer
        """
        task_doc = await self._get_task_doc(task_id)
        await self.access.require(user_id, task_doc["project_id"], "track")

        update_doc = {
            "updated_at": utcnow(),
        }

        if task_update.title is not None:
            update_doc["title"] = task_update.title
        if task_update.description is not None:
            update_doc["description"] = task_update.description
        if task_update.status is not None:
            update_doc["status"] = task_update.status.value
        if "assigned_to" in task_update.model_fields_set:
            update_doc["assigned_to"] = task_update.assigned_to
        if task_update.deadline is not None:
            update_doc["deadline"] = ensure_utc(task_update.deadline)

        updated_doc = await self.tasks.find_one_and_update(
            {"_id": task_doc["_id"]},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )

        return self._doc_to_task(updated_doc)

    async def delete_task(self, user_id: str, task_id: str) -> dict:
        """
        Delete a task.

        Time entries logged against the task keep existing with their task
        reference cleared.

        Raises:
            NotFound: If task not found
            Unauthorized: If the user is a viewer
        """
        task_doc = await self._get_task_doc(task_id)
        await self.access.require(user_id, task_doc["project_id"], "track")

        task_key = str(task_doc["_id"])
        detached = await self.time_entries.update_many(
            {"task_id": task_key},
            {"$set": {"task_id": None, "updated_at": utcnow()}},
        )
        result = await self.tasks.delete_one({"_id": task_doc["_id"]})

        logger.info("Deleted task %s (%d entries detached)", task_key, detached.modified_count)

        return {
            "deleted_count": result.deleted_count,
            "detached_time_entries": detached.modified_count,
        }
