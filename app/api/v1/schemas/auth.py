# app/api/v1/schemas/auth.py
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
import re

from app.api.v1.schemas.users import UserResponse


class Token(BaseModel):
    """
    Schema for JWT tokens returned by the authentication endpoints.
    """
    access_token: str
    token_type: str = "bearer"


class AuthResponse(UserResponse):
    """Profile of the authenticated user together with a fresh access token"""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """
    Schema for data contained within a JWT token payload.
    """
    email: Optional[EmailStr] = None
    user_id: Optional[int] = None


def check_password_complexity(password: str) -> None:
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter.")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter.")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one digit.")
    if not re.search(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?]", password):
        raise ValueError("Password must contain at least one special character.")


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Display name.")
    email: EmailStr = Field(..., description="User's email address.")
    password: str = Field(
        ...,
        min_length=8,
        max_length=64,
        description="Password must be at least 8 characters long, include uppercase, lowercase, numbers, and special characters."
    )
    password_confirm: str = Field(..., description="Confirm password must match the password field.")
    profile_image_url: Optional[str] = Field(None, max_length=1024)
    admin_invite_token: Optional[str] = Field(None, description="Grants the admin role when it matches the server's invite token.")

    @model_validator(mode='after')
    def validate_password_complexity(self) -> 'UserCreate':
        check_password_complexity(self.password)
        return self

    @model_validator(mode='after')
    def passwords_match(self) -> 'UserCreate':
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match.")
        return self


class UserLogin(BaseModel):
    """
    Schema for user login credentials.
    """
    username: EmailStr = Field(..., description="User's email address for login.")
    password: str = Field(..., description="User's password for login.")


class ProfileUpdate(BaseModel):
    """Fields the user may change on their own profile; only supplied keys are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    profile_image_url: Optional[str] = Field(None, max_length=1024)
    password: Optional[str] = Field(None, min_length=8, max_length=64)

    @model_validator(mode='after')
    def validate_password_complexity(self) -> 'ProfileUpdate':
        if self.password is not None:
            check_password_complexity(self.password)
        return self


class ImageUploadResponse(BaseModel):
    image_url: str
