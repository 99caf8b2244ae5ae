from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from microblog.schemas.enums import Role


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    bio: Optional[str] = Field(None, max_length=500)
    picture: Optional[str] = Field(None, max_length=500)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=20)


class UserUpdate(BaseModel):
    """All fields optional; at least one must be present"""
    username: Optional[str] = Field(None, min_length=3, max_length=20, pattern=r"^[A-Za-z0-9_.-]+$")
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=500)
    picture: Optional[str] = Field(None, max_length=500)

    def has_changes(self) -> bool:
        return bool(self.model_dump(exclude_unset=True))


class ChangePassword(BaseModel):
    current_password: str = Field(..., min_length=8, max_length=20)
    new_password: str = Field(..., min_length=8, max_length=20)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info):
        new_password = info.data.get("new_password")
        if new_password is not None and v != new_password:
            raise ValueError("Passwords do not match!")
        return v


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    bio: Optional[str] = None
    picture: Optional[str] = None
    role: Role
    created_at: datetime


class UserProfile(UserRead):
    followers_count: int = 0
    following_count: int = 0
