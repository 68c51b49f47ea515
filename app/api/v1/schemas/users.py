# app/api/v1/schemas/users.py
from pydantic import BaseModel, EmailStr, UUID4
from datetime import datetime
from typing import Optional

from app.db.models import UserRole

class UserBase(BaseModel):
    """
    Base schema for a user, containing common attributes.
    """
    name: str
    email: EmailStr
    profile_image_url: Optional[str] = None
    role: UserRole
    is_active: bool = True

class UserResponse(UserBase):
    """
    Schema for a user response; `id` is the public UUID.
    """
    id: UUID4
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, user, **extra):
        return cls(
            id=user.uuid,
            name=user.name,
            email=user.email,
            profile_image_url=user.profile_image_url,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
            **extra
        )

class UserWithTaskCounts(UserResponse):
    """Member listing entry with their assigned task counts"""
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0
