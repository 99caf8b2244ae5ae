from pydantic import BaseModel


class FollowStatus(BaseModel):
    follower_id: int
    followed_id: int
    following: bool
