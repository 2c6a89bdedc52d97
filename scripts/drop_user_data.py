"""Drop all data for a specific user.

Owned projects are deleted with the same cascade the API uses, so their
tasks, members and time entries go too.

Usage:
    python scripts/drop_user_data.py --user-id <user-id>
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.services.project_service import ProjectService
from app.utils.logging import configure_logging

logger = logging.getLogger("drop_user_data")


async def drop_user_data(mongodb_url: str, db_name: str, user_id: str) -> dict:
    """Delete every document belonging to a user and return the counts."""
    client = AsyncIOMotorClient(mongodb_url, tz_aware=True)
    db = client[db_name]
    counts = {}

    try:
        service = ProjectService(db)
        owned = await db["projects"].find({"created_by": user_id}).to_list(length=None)
        for project in owned:
            await service.delete_project(user_id=user_id, project_id=str(project["_id"]))
        counts["projects"] = len(owned)

        # Entries and memberships on projects owned by someone else
        for collection_name in ("time_entries", "project_members"):
            result = await db[collection_name].delete_many({"user_id": user_id})
            counts[collection_name] = result.deleted_count

        for name, count in counts.items():
            logger.info("Deleted %d documents from %s", count, name)
    finally:
        client.close()

    return counts


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Delete all data for a user")
    parser.add_argument(
        "--user-id",
        required=True,
        help="User ID whose data should be deleted",
    )
    parser.add_argument(
        "--mongodb-url",
        default=settings.mongodb_url,
        help="MongoDB connection URL",
    )
    parser.add_argument(
        "--db-name",
        default=settings.mongodb_db_name,
        help="Database name",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level, settings.log_json)

    asyncio.run(drop_user_data(args.mongodb_url, args.db_name, args.user_id))


if __name__ == "__main__":
    main()
