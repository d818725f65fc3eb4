from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from cmspro.models.user import UserRole, AccountStatus


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class UserRegister(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.SUBMITTER

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: str = Field(..., max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)


class PublicProfile(BaseModel):
    """Minimal profile returned with a session token"""
    id: str
    name: str
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class UserResponse(PublicProfile):
    status: AccountStatus
    created_at: datetime


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: PublicProfile


class RegisterResponse(BaseModel):
    """Submitters (and the super admin) get a token; other admins get a pending message"""
    success: bool = True
    message: Optional[str] = None
    token: Optional[str] = None
    user: Optional[PublicProfile] = None
    status: AccountStatus


class UserListResponse(BaseModel):
    success: bool = True
    count: int
    data: list[UserResponse]
