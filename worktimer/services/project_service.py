"""Project service - business logic for project management."""
import logging
import random
from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from worktimer.exceptions import NotFoundError, ValidationError
from worktimer.models.project import Project, ProjectCreate, ProjectPage, ProjectUpdate
from worktimer.models.time_entry import SortOrder
from worktimer.utils.duration import utc_now
from worktimer.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

PROJECT_ORDER_FIELDS = ("name", "created_at", "updated_at")


def random_color() -> str:
    """
    Pick a random display color.

    Examples:
        >>> len(random_color())
        7
    """
    return "#{:06x}".format(random.randint(0, 0xFFFFFF))


class ProjectService:
    """Service for handling project operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.time_entries = db["time_entries"]

    def _doc_to_project(self, doc: dict) -> Project:
        """
        Convert database document to Project model.
        """
        return Project(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            name=doc["name"],
            description=doc.get("description", ""),
            color=doc["color"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _ensure_name_available(
        self,
        user_id: str,
        name: str,
        exclude_id=None,
    ) -> None:
        query = {"user_id": user_id, "name": name}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await self.projects.find_one(query):
            raise ValidationError(f"A project named '{name}' already exists", field="name")

    async def create_project(
        self,
        user_id: str,
        project_create: ProjectCreate,
    ) -> Project:
        """
        Create a new project.

        Args:
            user_id: User ID who owns the project
            project_create: Project creation data

        Returns:
            Created project object

        Raises:
            ValidationError: If the user already has a project with that name
        """
        name = project_create.name.strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        await self._ensure_name_available(user_id, name)

        now = utc_now()
        project_doc = {
            "user_id": user_id,
            "name": name,
            "description": project_create.description,
            "color": project_create.color or random_color(),
            "created_at": now,
            "updated_at": now,
        }

        result = await self.projects.insert_one(project_doc)
        project_doc["_id"] = result.inserted_id

        return self._doc_to_project(project_doc)

    async def list_projects(
        self,
        user_id: str,
        page: int = 1,
        size: Optional[int] = None,
        order_by: str = "updated_at",
        order: SortOrder = SortOrder.DESC,
    ) -> ProjectPage:
        """
        List projects for a user.

        Args:
            user_id: User ID
            page: 1-based page number
            size: Page size, or None for every project
            order_by: One of name, created_at, updated_at
            order: Sort direction

        Returns:
            Page of projects
        """
        if order_by not in PROJECT_ORDER_FIELDS:
            raise ValidationError(f"Cannot order projects by '{order_by}'", field="order_by")

        query = {"user_id": user_id}
        total = await self.projects.count_documents(query)

        options = {
            "sort": [(order_by, ASCENDING if order == SortOrder.ASC else DESCENDING)],
        }
        if size:
            options["skip"] = (page - 1) * size
            options["limit"] = size

        cursor = self.projects.find(query, **options)
        project_docs = await cursor.to_list(length=None)

        return ProjectPage(
            total=total,
            page=page,
            size=size or total,
            projects=[self._doc_to_project(doc) for doc in project_docs],
        )

    async def get_project(
        self,
        user_id: str,
        project_id: str,
    ) -> Project:
        """
        Get a project by id.

        Raises:
            NotFoundError: If project not found
        """
        project_doc = await self.projects.find_one({
            "_id": parse_object_id(project_id, "Project"),
            "user_id": user_id,
        })

        if not project_doc:
            raise NotFoundError("Project not found")

        return self._doc_to_project(project_doc)

    async def find_by_name(self, user_id: str, name: str) -> Optional[Project]:
        """Exact-name lookup within the user's projects."""
        project_doc = await self.projects.find_one({"user_id": user_id, "name": name})
        return self._doc_to_project(project_doc) if project_doc else None

    async def get_or_create_by_name(self, user_id: str, name: str) -> tuple[Project, bool]:
        """
        Resolve a project by exact name, creating it with a random color.

        Returns:
            (project, created)
        """
        project = await self.find_by_name(user_id, name)
        if project is not None:
            return project, False

        project = await self.create_project(user_id, ProjectCreate(name=name))
        logger.info("Created project '%s' for user %s", name, user_id)
        return project, True

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
            NotFoundError: If project not found
            ValidationError: If the new name is taken
        """
        object_id = parse_object_id(project_id, "Project")
        existing = await self.projects.find_one({"_id": object_id, "user_id": user_id})

        if not existing:
            raise NotFoundError("Project not found")

        update_doc = {
            "updated_at": utc_now(),
        }

        if project_update.name is not None:
            name = project_update.name.strip()
            await self._ensure_name_available(user_id, name, exclude_id=object_id)
            update_doc["name"] = name
        if project_update.description is not None:
            update_doc["description"] = project_update.description
        if project_update.color is not None:
            update_doc["color"] = project_update.color

        updated_doc = await self.projects.find_one_and_update(
            {"_id": object_id, "user_id": user_id},
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
        Delete a project together with its time entries.

        Returns:
            Dictionary with deleted_count and deleted_entries

        Raises:
            NotFoundError: If project not found
        """
        object_id = parse_object_id(project_id, "Project")
        existing = await self.projects.find_one({"_id": object_id, "user_id": user_id})

        if not existing:
            raise NotFoundError("Project not found")

        entries = await self.time_entries.delete_many({
            "user_id": user_id,
            "project_id": project_id,
        })
        result = await self.projects.delete_one({"_id": object_id, "user_id": user_id})

        return {
            "deleted_count": result.deleted_count,
            "deleted_entries": entries.deleted_count,
        }
