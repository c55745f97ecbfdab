"""Settings service - instance switches persisted in MongoDB."""
import logging

from worktimer.config import settings
from worktimer.models.settings import InstanceSettings, InstanceSettingsUpdate
from worktimer.utils.duration import utc_now

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Service for reading and changing instance settings.

    Each setting is one document keyed by its name. A setting that was
    never saved falls back to the value from the environment.
    """

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.settings = db["settings"]

    def _defaults(self) -> dict:
        return {"allow_user_signup": settings.allow_user_signup}

    async def get_settings(self) -> InstanceSettings:
        """Current settings, stored values taking precedence over defaults."""
        values = self._defaults()
        docs = await self.settings.find({"_id": {"$in": list(values)}}).to_list(length=None)
        for doc in docs:
            values[doc["_id"]] = doc["value"]
        return InstanceSettings(**values)

    async def update_settings(self, update: InstanceSettingsUpdate) -> InstanceSettings:
        """
        Persist the fields present in update.

        Returns:
            The settings after the change
        """
        now = utc_now()
        for name, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
            await self.settings.update_one(
                {"_id": name},
                {"$set": {"value": value, "updated_at": now}},
                upsert=True,
            )
            logger.info("Setting %s changed to %s", name, value)

        return await self.get_settings()

    async def allow_user_signup(self) -> bool:
        return (await self.get_settings()).allow_user_signup
