"""Authentication service - business logic for user accounts."""
import logging
import re
from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from worktimer.config import settings
from worktimer.exceptions import (
    AuthenticationError,
    NotFoundError,
    SignupDisabledError,
    ValidationError,
)
from worktimer.models.time_entry import SortOrder
from worktimer.models.user import User, UserPage, UserPreferences
from worktimer.services.settings_service import SettingsService
from worktimer.utils.auth import create_access_token, hash_password, verify_password
from worktimer.utils.duration import utc_now
from worktimer.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

USER_ORDER_FIELDS = ("email", "name", "created_at", "updated_at")


class AuthService:
    """Service for handling user authentication and accounts."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.users = db["users"]

    def _doc_to_user(self, doc: dict) -> User:
        return User(
            _id=str(doc["_id"]),
            email=doc["email"],
            name=doc["name"],
            admin=doc.get("admin", False),
            currency=doc.get("currency") or settings.default_currency,
            default_hourly_rate=doc.get("default_hourly_rate"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_user(self, user_id: str) -> dict:
        user_doc = await self.users.find_one({"_id": parse_object_id(user_id, "User")})
        if not user_doc:
            raise NotFoundError("User not found")
        return user_doc

    async def register_user(
        self,
        email: str,
        password: str,
        name: str,
        created_by_admin: bool = False,
    ) -> User:
        """
        Register a new user.

        The first account created on an instance becomes its administrator.
        Accounts created by an administrator ignore the sign up switch.

        Args:
            email: User email address
            password: Plain text password
            name: User's name
            created_by_admin: Whether an administrator is creating the account

        Returns:
            User object (without password)

        Raises:
            SignupDisabledError: If registration is switched off
            ValidationError: If email is already registered
        """
        user_count = await self.users.count_documents({})
        if user_count > 0 and not created_by_admin:
            if not await SettingsService(self.db).allow_user_signup():
                raise SignupDisabledError("Sign up is disabled")

        if await self.users.find_one({"email": email}):
            raise ValidationError("Email already registered", field="email")

        now = utc_now()
        user_doc = {
            "email": email,
            "hashed_password": hash_password(password),
            "name": name,
            "admin": user_count == 0,
            "currency": settings.default_currency,
            "default_hourly_rate": None,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.users.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id
        logger.info("Registered user %s", result.inserted_id)

        return self._doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> str:
        """
        Login user and return JWT token.

        Raises:
            AuthenticationError: If credentials are invalid
        """
        user_doc = await self.users.find_one({"email": email})
        if not user_doc or not verify_password(password, user_doc["hashed_password"]):
            raise AuthenticationError("Invalid email or password")

        return create_access_token(
            user_id=str(user_doc["_id"]),
            admin=user_doc.get("admin", False),
        )

    async def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            NotFoundError: If user not found
        """
        return self._doc_to_user(await self._find_user(user_id))

    async def update_preferences(self, user_id: str, preferences: UserPreferences) -> User:
        """
        Update name, currency label and default hourly rate.

        Raises:
            NotFoundError: If user not found
        """
        user_doc = await self._find_user(user_id)

        update_doc = preferences.model_dump(exclude_unset=True)
        update_doc["updated_at"] = utc_now()

        updated = await self.users.find_one_and_update(
            {"_id": user_doc["_id"]},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        return self._doc_to_user(updated)

    async def update_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            AuthenticationError: If current_password is wrong
        """
        user_doc = await self._find_user(user_id)
        if not verify_password(current_password, user_doc["hashed_password"]):
            raise AuthenticationError("Current password is incorrect")

        await self.users.update_one(
            {"_id": user_doc["_id"]},
            {"$set": {"hashed_password": hash_password(new_password), "updated_at": utc_now()}},
        )

    async def delete_account(self, user_id: str) -> dict:
        """
        Delete a user together with their projects and time entries.

        Returns:
            Counts of deleted documents per collection
        """
        user_doc = await self._find_user(user_id)

        entries = await self.db["time_entries"].delete_many({"user_id": user_id})
        projects = await self.db["projects"].delete_many({"user_id": user_id})
        await self.users.delete_one({"_id": user_doc["_id"]})
        logger.info("Deleted account %s", user_id)

        return {
            "time_entries": entries.deleted_count,
            "projects": projects.deleted_count,
        }

    async def list_users(
        self,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 25,
        order_by: str = "created_at",
        order: SortOrder = SortOrder.DESC,
    ) -> UserPage:
        """
        List users for the admin screen, filtered by an email substring.
        """
        if order_by not in USER_ORDER_FIELDS:
            raise ValidationError(f"Cannot order users by '{order_by}'", field="order_by")

        query = {}
        if search:
            query["email"] = {"$regex": re.escape(search), "$options": "i"}

        total = await self.users.count_documents({})
        filtered_total = await self.users.count_documents(query)

        cursor = self.users.find(
            query,
            sort=[(order_by, ASCENDING if order == SortOrder.ASC else DESCENDING)],
            skip=(page - 1) * size,
            limit=size,
        )
        user_docs = await cursor.to_list(length=None)

        return UserPage(
            total=total,
            filtered_total=filtered_total,
            page=page,
            size=size,
            users=[self._doc_to_user(doc) for doc in user_docs],
        )
