from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from microblog.schemas.enums import Role
from microblog.utils.clock import utc_now


class UserBase(SQLModel):
    """Base fields shared across user schemas"""
    username: str = Field(..., min_length=3, max_length=20, unique=True, index=True)
    email: str = Field(..., max_length=255, unique=True, index=True)
    bio: Optional[str] = Field(default=None, max_length=500)
    picture: Optional[str] = Field(default=None, max_length=500)


class User(UserBase, table=True):
    """Identity record. ``id`` and ``role`` never change once created, except through the admin script."""
    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_password: str = Field(..., nullable=False)
    role: Role = Field(default=Role.USER, nullable=False)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
