from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer
from sqlmodel import SQLModel, Field


class UserFollow(SQLModel, table=True):
    """Directed follow edge; the composite primary key keeps edges unique per ordered pair"""
    __table_args__ = (
        CheckConstraint("follower_id <> followed_id", name="ck_userfollow_no_self_follow"),
    )

    follower_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            primary_key=True,
            index=True  # For faster following queries
        )
    )
    followed_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            primary_key=True,
            index=True  # For faster follower queries
        )
    )
