from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..core.settings import settings
from ..models.user import UserRole
from .common import UTCDateTime


class UserBase(BaseModel):
    username: str
    email: EmailStr


# Properties to receive via API on creation
class UserCreate(UserBase):
    username: str = Field(..., min_length=3, max_length=50)
    password: str

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, v: str) -> str:
        min_length = settings.security.PASSWORD_MIN_LENGTH
        if len(v) < min_length:
            raise ValueError(f"Password must be at least {min_length} characters")
        return v


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class User(UserBase):
    id: int
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class UserDetail(User):
    created_at: Optional[UTCDateTime] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: User


class MeResponse(BaseModel):
    user: UserDetail


class TokenPayload(BaseModel):
    sub: int
    username: str
    email: str
    role: UserRole
    exp: Optional[int] = None
