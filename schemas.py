from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from utils.security import MAX_PASSWORD_BYTES

PASSWORD_MIN_LENGTH = 7


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


def _clean_password(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if "password" in value.lower():
        raise ValueError('Password cannot contain "password"')
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def _clean_description(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Description is required")
    return value


class UserCreate(BaseModel):
    """Schema for registering a new user"""
    name: str
    email: EmailStr
    password: str
    age: int = Field(0, ge=0)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _clean_password(v)


class UserUpdate(BaseModel):
    """Schema for updating the authenticated user; unknown keys are rejected"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("name", "email", "password", "age")
    @classmethod
    def not_null(cls, v):
        # Only runs for submitted values, so None here was sent explicitly
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return _clean_password(v)


class UserLogin(BaseModel):
    """Schema for login credentials"""
    email: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user: no password hash, tokens or avatar bytes"""
    id: str
    name: str
    email: str
    age: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Schema returned on signup and login"""
    user: UserResponse
    token: str


class TaskCreate(BaseModel):
    """Schema for creating a new task"""
    description: str
    completed: bool = False

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        return _clean_description(v)


class TaskUpdate(BaseModel):
    """Schema for updating a task; unknown keys are rejected"""
    model_config = ConfigDict(extra="forbid")

    description: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("description", "completed")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        return _clean_description(v)


class TaskResponse(BaseModel):
    """Schema for task response"""
    id: str
    owner_id: str
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Plain acknowledgement"""
    message: str
