"""
User profile endpoints. Updates and deletes are limited to the owner or an admin.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import InvalidOperationError, NotFoundError
from microblog.core.security import get_current_principal
from microblog.core.visibility import ensure_owner_or_admin
from microblog.crud import follow as follow_crud
from microblog.crud import user as user_crud
from microblog.db.database import get_db
from microblog.schemas.auth import Principal
from microblog.schemas.user import UserProfile, UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["Users"])


async def _profile(db: AsyncSession, user) -> UserProfile:
    return UserProfile(
        **UserRead.model_validate(user).model_dump(),
        followers_count=await follow_crud.count_followers(db, user.id),
        following_count=await follow_crud.count_following(db, user.id),
    )


@router.get("/me", response_model=UserProfile)
async def read_my_profile(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    user = await user_crud.get_user_or_404(db, principal.user_id)
    return await _profile(db, user)


@router.get("/", response_model=List[UserRead])
async def read_users(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return await user_crud.list_users(db, offset=offset, limit=limit)


@router.get("/by-username/{username}", response_model=UserProfile)
async def read_user_by_username(
    username: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    user = await user_crud.get_user_by_username(db, username)
    if user is None:
        raise NotFoundError("User", "username", username, error_code=error_codes.USER_NOT_FOUND)
    return await _profile(db, user)


@router.get("/{user_id}", response_model=UserProfile)
async def read_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    user = await user_crud.get_user_or_404(db, user_id)
    return await _profile(db, user)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    ensure_owner_or_admin(principal, user_id)
    if not user_in.has_changes():
        raise InvalidOperationError("At least one field must be provided")
    return await user_crud.update_user(db, user_id, user_in)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    ensure_owner_or_admin(principal, user_id)
    await user_crud.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
