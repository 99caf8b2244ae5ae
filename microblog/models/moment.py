"""
Moment model: a short post with tiered visibility.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlmodel import SQLModel, Field

from microblog.schemas.enums import Visibility
from microblog.utils.clock import utc_now


class Moment(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    text: str = Field(..., max_length=500)
    author_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )
    )
    visibility: Visibility = Field(default=Visibility.PUBLIC, index=True, nullable=False)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False, index=True)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
