"""Project router - API endpoints for project management."""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from worktimer.config import settings
from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError
from worktimer.models.project import Project, ProjectCreate, ProjectPage, ProjectUpdate
from worktimer.models.time_entry import SortOrder
from worktimer.routers.auth import get_current_user_id
from worktimer.routers.errors import http_error
from worktimer.services.project_service import ProjectService


router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: ProjectCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a new project.

    Args:
        project: Project creation data
        user_id: Current user ID (from token)
        db: Database connection

    Returns:
        Created project object

    Raises:
        HTTPException: If the name is already used (422)
    """
    service = ProjectService(db)

    try:
        return await service.create_project(
            user_id=user_id,
            project_create=project,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.get("", response_model=ProjectPage)
async def list_projects(
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1, le=settings.max_page_size),
    order_by: str = Query("updated_at", description="name, created_at or updated_at"),
    order: SortOrder = Query(SortOrder.DESC),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List projects for the current user.

    Without a size every project is returned.
    """
    service = ProjectService(db)

    try:
        return await service.list_projects(
            user_id=user_id,
            page=page,
            size=size,
            order_by=order_by,
            order=order,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a project by id.

    Raises:
        HTTPException: If project not found (404)
    """
    service = ProjectService(db)

    try:
        return await service.get_project(
            user_id=user_id,
            project_id=project_id,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a project.

    Raises:
        HTTPException: If project not found (404) or the name is taken (422)
    """
    service = ProjectService(db)

    try:
        return await service.update_project(
            user_id=user_id,
            project_id=project_id,
            project_update=project_update,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a project and its time entries.

    Returns:
        Dictionary with deleted_count and deleted_entries

    Raises:
        HTTPException: If project not found (404)
    """
    service = ProjectService(db)

    try:
        return await service.delete_project(
            user_id=user_id,
            project_id=project_id,
        )
    except TimeTrackingError as e:
        raise http_error(e)
