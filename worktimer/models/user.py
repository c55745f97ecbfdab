"""User model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    """Base user fields."""

    email: EmailStr
    name: str


class UserCreate(UserBase):
    """User creation model with password."""

    password: str = Field(min_length=8)


class UserPreferences(BaseModel):
    """Profile fields a user may change on their own account."""

    name: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=1, max_length=8)
    default_hourly_rate: Optional[float] = Field(default=None, ge=0)


class PasswordChange(BaseModel):
    """Password update request."""

    current_password: str
    new_password: str = Field(min_length=8)


class User(UserBase):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    admin: bool = False
    currency: str = "€"
    default_hourly_rate: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class UserPage(BaseModel):
    """Paginated user listing for administrators."""

    total: int
    filtered_total: int
    page: int
    size: int
    users: list[User]
