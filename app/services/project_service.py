"""Project service - business logic for project management."""
import logging
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.models.project import (
    MemberRole,
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberCreate,
    ProjectUpdate,
)
from app.services.access import ProjectAccess
from app.services.errors import Conflict, NotFound
from app.utils.duration import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for handling project operations."""

    def __init__(self, db, access: Optional[ProjectAccess] = None):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.members = db["project_members"]
        self.tasks = db["tasks"]
        self.time_entries = db["time_entries"]
        self.access = access if access is not None else ProjectAccess(db)

    def _doc_to_project(self, doc: dict) -> Project:
        """
        Convert database document to Project model.
        """
        return Project(
            _id=str(doc["_id"]),
            name=doc["name"],
            description=doc.get("description"),
            color=doc.get("color", "#3B82F6"),
            deadline=ensure_utc(doc.get("deadline")),
            created_by=doc["created_by"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    def _doc_to_member(self, doc: dict) -> ProjectMember:
        return ProjectMember(
            project_id=doc["project_id"],
            user_id=doc["user_id"],
            role=doc["role"],
            joined_at=doc["joined_at"],
        )

    async def create_project(
        self,
        user_id: str,
        project_create: ProjectCreate,
    ) -> Project:
        """
        Create a new project owned by the user.

        Args:
            user_id: User ID who owns the project
            project_create: Project creation data

        Returns:
            Created project object
        """
        now = utcnow()

        project_doc = {
            "name": project_create.name,
            "description": project_create.description,
            "color": project_create.color,
            "deadline": ensure_utc(project_create.deadline),
            "created_by": user_id,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.projects.insert_one(project_doc)
        project_doc["_id"] = result.inserted_id
        logger.info("Created project %s for user %s", result.inserted_id, user_id)

        return self._doc_to_project(project_doc)

    async def list_projects(self, user_id: str) -> list[Project]:
        """
        List projects the user owns or is a member of.

        Args:
            user_id: User ID

        Returns:
            List of projects, newest first
        """
        member_of = await self.access.visible_project_ids(user_id)

        query = {"created_by": user_id}
        if member_of:
            query = {
                "$or": [
                    {"created_by": user_id},
                    {"_id": {"$in": [ObjectId(pid) for pid in member_of]}},
                ]
            }

        cursor = self.projects.find(query).sort("created_at", -1)
        project_docs = await cursor.to_list(length=None)

        return [self._doc_to_project(doc) for doc in project_docs]

    async def get_project(self, user_id: str, project_id: str) -> Project:
        """
        Get a project visible to the user.

        Raises:
            NotFound: If project not found
        """
        project_doc = await self.access.require(user_id, project_id, "view")
        return self._doc_to_project(project_doc)

    async def update_project(
        self,
        user_id: str,
        project_id: str,
        project_update: ProjectUpdate,
    ) -> Project:
        """
        Update a project.

        Args:
            user_id: User ID
            project_id: Project ID
            project_update: Update data

        Returns:
            Updated project object

        Raises:
            NotFound: If project not found
            Unauthorized: If the user is neither owner nor admin
        """
        existing = await self.access.require(user_id, project_id, "manage")

        update_doc = {
            "updated_at": utcnow(),
        }

        if project_update.name is not None:
            update_doc["name"] = project_update.name
        if project_update.description is not None:
            update_doc["description"] = project_update.description
        if project_update.color is not None:
            update_doc["color"] = project_update.color
        if project_update.deadline is not None:
            update_doc["deadline"] = ensure_utc(project_update.deadline)

        updated_doc = await self.projects.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )

        return self._doc_to_project(updated_doc)

    async def delete_project(
        self,
        user_id: str,
        project_id: str,
    ) -> dict:
        """
        Delete a project with its tasks, members and time entries.

        Args:
            user_id: User ID
            project_id: Project ID

        Returns:
            Dictionary with deleted_count and the cascaded counts

        Raises:
            NotFound: If project not found
            Unauthorized: If the user is not the owner
        """
        existing = await self.access.require(user_id, project_id, "delete")
        project_key = str(existing["_id"])

        entries = await self.time_entries.delete_many({"project_id": project_key})
        tasks = await self.tasks.delete_many({"project_id": project_key})
        members = await self.members.delete_many({"project_id": project_key})
        result = await self.projects.delete_one({"_id": existing["_id"]})

        logger.info(
            "Deleted project %s (%d entries, %d tasks)",
            project_key, entries.deleted_count, tasks.deleted_count,
        )

        return {
            "deleted_count": result.deleted_count,
            "deleted_time_entries": entries.deleted_count,
            "deleted_tasks": tasks.deleted_count,
            "deleted_members": members.deleted_count,
        }

    async def add_member(
        self,
        user_id: str,
        project_id: str,
        member_create: ProjectMemberCreate,
    ) -> ProjectMember:
        """
        Add a user to a project.

        Raises:
            NotFound: If project not found
            Unauthorized: If the user is neither owner nor admin
            Conflict: If the user is already a member or is the owner
        """
        existing = await self.access.require(user_id, project_id, "manage")

        if member_create.user_id == existing["created_by"]:
            raise Conflict("Project owner cannot be added as a member")

        member_doc = {
            "project_id": str(existing["_id"]),
            "user_id": member_create.user_id,
            "role": MemberRole(member_create.role).value,
            "joined_at": utcnow(),
        }

        try:
            await self.members.insert_one(member_doc)
        except DuplicateKeyError:
            raise Conflict("User is already a member of this project")

        return self._doc_to_member(member_doc)

    async def list_members(self, user_id: str, project_id: str) -> list[ProjectMember]:
        """List members of a project visible to the user."""
        existing = await self.access.require(user_id, project_id, "view")

        cursor = self.members.find({"project_id": str(existing["_id"])}).sort("joined_at", 1)
        member_docs = await cursor.to_list(length=None)

        return [self._doc_to_member(doc) for doc in member_docs]

    async def remove_member(
        self,
        user_id: str,
        project_id: str,
        member_user_id: str,
    ) -> dict:
        """
        Remove a user from a project.

        Raises:
            NotFound: If project or membership not found
            Unauthorized: If the user is neither owner nor admin
        """
        existing = await self.access.require(user_id, project_id, "manage")

        result = await self.members.delete_one({
            "project_id": str(existing["_id"]),
            "user_id": member_user_id,
        })

        if result.deleted_count == 0:
            raise NotFound("Member not found")

        return {"deleted_count": result.deleted_count}
