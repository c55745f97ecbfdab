"""Remove a user's time tracking data.

Usage:
    python scripts/drop_user_data.py <user-id> \\
        [--mongodb-url mongodb://localhost:27017] [--delete-account]

Projects and time entries are deleted; with --delete-account the user
document goes too.
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from worktimer.config import settings
from worktimer.exceptions import NotFoundError
from worktimer.services.auth_service import AuthService


async def drop_user_data(mongodb_url: str, db_name: str, user_id: str, delete_account: bool) -> dict:
    """Delete the user's data and return per-collection counts."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]

    try:
        if delete_account:
            return await AuthService(db).delete_account(user_id)

        counts = {}
        for collection_name in ["time_entries", "projects"]:
            result = await db[collection_name].delete_many({"user_id": user_id})
            counts[collection_name] = result.deleted_count
        return counts
    finally:
        client.close()


def main():
    parser = argparse.ArgumentParser(description="Delete a user's projects and time entries")
    parser.add_argument("user_id")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url)
    parser.add_argument("--db-name", default=settings.mongodb_db_name)
    parser.add_argument("--delete-account", action="store_true", help="Also delete the user")
    args = parser.parse_args()

    try:
        counts = asyncio.run(
            drop_user_data(args.mongodb_url, args.db_name, args.user_id, args.delete_account)
        )
    except NotFoundError as e:
        print(e.message)
        sys.exit(1)

    for collection_name, deleted in counts.items():
        print(f"Deleted {deleted} documents from {collection_name}")
    print("Done!")


if __name__ == "__main__":
    main()
