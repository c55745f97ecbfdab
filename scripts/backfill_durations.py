"""Cache missing durations of finished time entries.

Usage:
    python scripts/backfill_durations.py \\
        --mongodb-url mongodb://localhost:27017 \\
        [--user-id <user-id>]

Without --user-id every user that owns time entries is processed.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from worktimer.config import settings
from worktimer.services.time_entry_service import TimeEntryService


async def backfill(mongodb_url: str, db_name: str, user_id: Optional[str]) -> int:
    """Run the backfill and return the number of entries updated."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]
    print(f"Connected to MongoDB: {db_name}")

    try:
        service = TimeEntryService(db)
        if user_id:
            user_ids = [user_id]
        else:
            user_ids = await db["time_entries"].distinct("user_id")

        total = 0
        for uid in user_ids:
            updated = await service.backfill_durations(uid)
            if updated:
                print(f"  {uid}: {updated} entries updated")
            total += updated
        return total
    finally:
        client.close()


def main():
    parser = argparse.ArgumentParser(description="Backfill cached time entry durations")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url)
    parser.add_argument("--db-name", default=settings.mongodb_db_name)
    parser.add_argument("--user-id", default=None, help="Only backfill this user")
    args = parser.parse_args()

    total = asyncio.run(backfill(args.mongodb_url, args.db_name, args.user_id))
    print(f"Done! {total} entries updated")


if __name__ == "__main__":
    main()
