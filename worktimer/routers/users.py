"""Users router - administrator endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from worktimer.config import settings
from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError, ValidationError
from worktimer.models.time_entry import SortOrder
from worktimer.models.user import User, UserCreate, UserPage
from worktimer.routers.auth import require_admin
from worktimer.routers.errors import http_error
from worktimer.services.auth_service import AuthService
from worktimer.utils.auth import Identity


router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserPage)
async def list_users(
    search: Optional[str] = Query(None, description="Email substring"),
    page: int = Query(1, ge=1),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    order_by: str = Query("created_at"),
    order: SortOrder = Query(SortOrder.DESC),
    admin: Identity = Depends(require_admin),
    db=Depends(get_database),
):
    """
    List registered users.

    - Requires an administrator token
    """
    service = AuthService(db)

    try:
        return await service.list_users(
            search=search,
            page=page,
            size=size,
            order_by=order_by,
            order=order,
        )
    except TimeTrackingError as e:
        raise http_error(e)


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    admin: Identity = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Create an account on behalf of someone else.

    - Works while sign up is disabled
    - Returns 400 if the email is already registered
    """
    service = AuthService(db)

    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
            created_by_admin=True,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except TimeTrackingError as e:
        raise http_error(e)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: Identity = Depends(require_admin),
    db=Depends(get_database),
):
    """
    Delete a user with all their projects and time entries.

    - Returns 404 if the user doesn't exist
    """
    service = AuthService(db)

    try:
        return await service.delete_account(user_id)
    except TimeTrackingError as e:
        raise http_error(e)
