"""
Pydantic schemas for user registration, login and profile management.
"""

from pydantic import EmailStr, field_validator
from typing import Optional
from datetime import datetime
import re

from we3vision.models.user import UserRole
from we3vision.schemas.common import APIModel, trimmed_length


def _check_password_strength(v: str) -> str:
    """Validate password contains required character types."""
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if len(v) > 72:
        raise ValueError('Password cannot exceed 72 characters (bcrypt limitation)')
    if not re.search(r'[a-z]', v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not re.search(r'[A-Z]', v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not re.search(r'\d', v):
        raise ValueError('Password must contain at least one number')
    if not re.search(r'[!@#$%^&*(),.?":{}|<>]', v):
        raise ValueError('Password must contain at least one special character (!@#$%^&*(),.?":{}|<>)')
    return v


def _check_name(v: str) -> str:
    return trimmed_length(v, 2, 50, "Name must be between 2 and 50 characters")


class UserRegisterRequest(APIModel):
    """Request schema for user registration."""
    name: str
    email: EmailStr
    password: str

    field_messages = {"email": "Please provide a valid email"}

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


class UserLoginRequest(APIModel):
    email: EmailStr
    password: str

    field_messages = {"email": "Please provide a valid email"}


class ProfileUpdateRequest(APIModel):
    """Every field is optional; only fields sent are applied."""
    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return _check_name(v)

    @field_validator("bio", mode="before")
    @classmethod
    def validate_bio(cls, v):
        if v is None:
            return v
        return trimmed_length(v, 0, 500, "Bio cannot be more than 500 characters")


class PasswordChangeRequest(APIModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return _check_password_strength(v)


class RoleUpdateRequest(APIModel):
    role: UserRole

    field_messages = {"role": "Role must be one of: user, admin"}


class UserPublic(APIModel):
    """Author/commenter summary embedded in blog payloads."""
    id: int
    name: str
    avatar: Optional[str] = None


class UserResponse(APIModel):
    """User profile response (no sensitive data)."""
    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TokenResponse(APIModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
