"""
Pydantic schemas for moment data validation and serialization.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from microblog.schemas.enums import Visibility


class MomentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    visibility: Visibility = Field(default=Visibility.PUBLIC)


class MomentUpdate(BaseModel):
    """Text is replaced; visibility is kept when omitted"""
    text: str = Field(..., min_length=1, max_length=500)
    visibility: Optional[Visibility] = None


class MomentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    author_id: int
    visibility: Visibility
    created_at: datetime
    updated_at: Optional[datetime] = None


class MomentPermissions(BaseModel):
    moment_id: str
    can_view: bool
    can_mutate: bool
