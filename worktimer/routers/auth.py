"""Auth router - API endpoints for authentication and accounts."""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import BaseModel

from worktimer.database import get_database
from worktimer.exceptions import TimeTrackingError, ValidationError
from worktimer.models.user import PasswordChange, User, UserCreate, UserPreferences
from worktimer.routers.errors import http_error
from worktimer.services.auth_service import AuthService
from worktimer.utils.auth import Identity, verify_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    """Login request model."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    """
    Dependency resolving the caller from the bearer token.

    Raises:
        HTTPException: If token is missing or invalid (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


async def get_current_user_id(identity: Identity = Depends(get_current_identity)) -> str:
    """Dependency to get current user ID from JWT token."""
    return identity.user_id


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Dependency admitting administrators only.

    Raises:
        HTTPException: If the caller is not an admin (403)
    """
    if not identity.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return identity


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db=Depends(get_database)):
    """
    Register a new user.

    - Returns 400 if the email is already registered
    - Returns 403 if sign up is disabled
    """
    service = AuthService(db)

    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except TimeTrackingError as e:
        raise http_error(e)


@router.post("/login", response_model=TokenResponse)
async def login(login_req: LoginRequest, db=Depends(get_database)):
    """
    Login user and return access token.

    Raises:
        HTTPException: If credentials are invalid (401)
    """
    service = AuthService(db)

    try:
        token = await service.login(
            email=login_req.email,
            password=login_req.password,
        )
        return TokenResponse(access_token=token)
    except TimeTrackingError as e:
        raise http_error(e)


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get current authenticated user.

    Raises:
        HTTPException: If user not found (404)
    """
    service = AuthService(db)

    try:
        return await service.get_user_by_id(user_id)
    except TimeTrackingError as e:
        raise http_error(e)


@router.patch("/me", response_model=User)
async def update_preferences(
    preferences: UserPreferences,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Update name, currency and default hourly rate."""
    service = AuthService(db)

    try:
        return await service.update_preferences(user_id, preferences)
    except TimeTrackingError as e:
        raise http_error(e)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def update_password(
    change: PasswordChange,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Change the password; the current one must be supplied."""
    service = AuthService(db)

    try:
        await service.update_password(user_id, change.current_password, change.new_password)
    except TimeTrackingError as e:
        raise http_error(e)


@router.delete("/me")
async def delete_account(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete the account with all its projects and time entries.

    - Permanent
    """
    service = AuthService(db)

    try:
        return await service.delete_account(user_id)
    except TimeTrackingError as e:
        raise http_error(e)
