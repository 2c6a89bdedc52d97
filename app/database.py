"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.config import settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
        self.db = self.client[settings.mongodb_db_name]
        await ensure_indexes(self.db)
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")


async def ensure_indexes(db) -> None:
    """
    Create the indexes the services rely on.

    The partial unique index on running entries is what keeps two devices
    from both starting a timer for the same user.
    """
    time_entries = db["time_entries"]
    await time_entries.create_index(
        [("user_id", ASCENDING)],
        unique=True,
        partialFilterExpression={"is_running": True},
        name="one_running_entry_per_user",
    )
    await time_entries.create_index(
        [("user_id", ASCENDING), ("start_time", DESCENDING)],
        name="user_entries_by_start",
    )
    await time_entries.create_index([("project_id", ASCENDING)], name="entries_by_project")
    await time_entries.create_index([("task_id", ASCENDING)], name="entries_by_task")

    await db["project_members"].create_index(
        [("project_id", ASCENDING), ("user_id", ASCENDING)],
        unique=True,
        name="unique_project_member",
    )
    await db["project_members"].create_index([("user_id", ASCENDING)], name="members_by_user")
    await db["projects"].create_index([("created_by", ASCENDING)], name="projects_by_owner")
    await db["tasks"].create_index([("project_id", ASCENDING)], name="tasks_by_project")


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
