"""Project capability checks.

Services receive a ``ProjectAccess`` instead of querying ownership and
membership inline, so the policy can be swapped without touching the
lifecycle code.
"""
import logging
from typing import Optional

from app.services.errors import NotFound, Unauthorized
from app.utils.ids import to_object_id

logger = logging.getLogger(__name__)

OWNER = "owner"

# Which roles grant which capability
CAPABILITIES = {
    "view": {OWNER, "admin", "member", "viewer"},
    "track": {OWNER, "admin", "member"},
    "manage": {OWNER, "admin"},
    "delete": {OWNER},
}


class ProjectAccess:
    """Owner / member checks against the projects and project_members collections."""

    def __init__(self, db):
        """Initialize with database connection."""
        self.projects = db["projects"]
        self.members = db["project_members"]

    async def get_role(self, user_id: str, project: dict) -> Optional[str]:
        """
        Role the user holds on a project.

        Returns:
            "owner", a member role, or None when the user has no access
        """
        if project["created_by"] == user_id:
            return OWNER

        membership = await self.members.find_one({
            "project_id": str(project["_id"]),
            "user_id": user_id,
        })
        if not membership:
            return None
        return membership["role"]

    async def require(self, user_id: str, project_id: str, capability: str) -> dict:
        """
        Load a project and check the user holds ``capability`` on it.

        Users with no relation to the project get ``NotFound`` rather than
        ``Unauthorized`` so project ids do not leak.

        Returns:
            The project document

        Raises:
            NotFound: If the project does not exist or is invisible to the user
            Unauthorized: If the user can see the project but lacks the capability
        """
        project = await self.projects.find_one({"_id": to_object_id(project_id, "Project")})
        if not project:
            raise NotFound("Project not found")

        role = await self.get_role(user_id, project)
        if role is None:
            raise NotFound("Project not found")

        if role not in CAPABILITIES[capability]:
            logger.warning(
                "User %s (%s) denied %s on project %s",
                user_id, role, capability, project_id,
            )
            raise Unauthorized()

        return project

    async def visible_project_ids(self, user_id: str) -> list[str]:
        """Ids of the projects the user has joined as a member."""
        cursor = self.members.find({"user_id": user_id})
        memberships = await cursor.to_list(length=None)
        return [m["project_id"] for m in memberships]
