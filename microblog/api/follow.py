from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import CustomHTTPException, NotFoundError
from microblog.core.security import get_current_principal
from microblog.crud import follow as follow_crud
from microblog.crud.user import user_exists
from microblog.db.database import get_db
from microblog.schemas.auth import MessageResponse, Principal
from microblog.schemas.follow import FollowStatus
from microblog.schemas.user import UserRead

router = APIRouter(prefix="/users", tags=["follow"])


@router.post("/{user_id}/follow", response_model=MessageResponse)
async def follow_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    followed = await follow_crud.follow_user(db, principal.user_id, user_id)
    if not followed:
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already followed",
            error_code=error_codes.ALREADY_FOLLOWING
        )
    return {"message": "User followed successfully"}


@router.delete("/{user_id}/unfollow", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    unfollowed = await follow_crud.unfollow_user(db, principal.user_id, user_id)
    if not unfollowed:
        raise CustomHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User not following",
            error_code=error_codes.NOT_FOLLOWING
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/followers", response_model=List[UserRead])
async def get_followers(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return await follow_crud.get_followers(db, user_id)


@router.get("/{user_id}/following", response_model=List[UserRead])
async def get_following(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return await follow_crud.get_following(db, user_id)


@router.get("/{follower_id}/follows/{followed_id}", response_model=FollowStatus)
async def get_follow_status(
    follower_id: int,
    followed_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    for user_id in (follower_id, followed_id):
        if not await user_exists(db, user_id):
            raise NotFoundError("User", "id", user_id, error_code=error_codes.USER_NOT_FOUND)
    return FollowStatus(
        follower_id=follower_id,
        followed_id=followed_id,
        following=await follow_crud.is_following(db, follower_id, followed_id),
    )
