"""
Follow graph: directed "follower follows followed" edges between users.

No self edges are ever stored; the composite primary key on UserFollow
keeps concurrent duplicate follows from creating a second edge.
"""
import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import InvalidOperationError, NotFoundError
from microblog.crud.user import user_exists
from microblog.models.follow import UserFollow
from microblog.models.user import User

logger = logging.getLogger(__name__)


async def _ensure_users_exist(db: AsyncSession, follower_id: int, followed_id: int) -> None:
    if not await user_exists(db, followed_id):
        raise NotFoundError("User", "followedId", followed_id, error_code=error_codes.USER_NOT_FOUND)
    if not await user_exists(db, follower_id):
        raise NotFoundError("User", "followerId", follower_id, error_code=error_codes.USER_NOT_FOUND)


async def is_following(db: AsyncSession, follower_id: int, followed_id: int) -> bool:
    """Check whether the edge exists; always False for a user and themselves"""
    if follower_id == followed_id:
        return False
    result = await db.execute(
        select(UserFollow.follower_id).where(
            UserFollow.follower_id == follower_id,
            UserFollow.followed_id == followed_id
        )
    )
    return result.first() is not None


async def follow_user(db: AsyncSession, follower_id: int, followed_id: int) -> bool:
    """Create the edge. Returns False when it already exists."""
    if follower_id == followed_id:
        raise InvalidOperationError("Users cannot follow themselves", error_code=error_codes.SELF_FOLLOW)
    await _ensure_users_exist(db, follower_id, followed_id)

    if await is_following(db, follower_id, followed_id):
        return False

    db.add(UserFollow(follower_id=follower_id, followed_id=followed_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # Either a concurrent request created the same edge first, or one
        # of the users was deleted after the existence check
        if await is_following(db, follower_id, followed_id):
            return False
        await _ensure_users_exist(db, follower_id, followed_id)
        raise

    logger.info(f"User {follower_id} followed user {followed_id}")
    return True


async def unfollow_user(db: AsyncSession, follower_id: int, followed_id: int) -> bool:
    """Remove the edge. Returns False when there was nothing to remove."""
    if follower_id == followed_id:
        raise InvalidOperationError("Users cannot unfollow themselves", error_code=error_codes.SELF_UNFOLLOW)
    await _ensure_users_exist(db, follower_id, followed_id)

    result = await db.execute(
        delete(UserFollow).where(
            UserFollow.follower_id == follower_id,
            UserFollow.followed_id == followed_id
        )
    )
    await db.commit()

    if not result.rowcount:
        return False

    logger.info(f"User {follower_id} unfollowed user {followed_id}")
    return True


async def get_followers(db: AsyncSession, user_id: int) -> List[User]:
    """Get all users following a given user"""
    if not await user_exists(db, user_id):
        raise NotFoundError("User", "userId", user_id, error_code=error_codes.USER_NOT_FOUND)
    result = await db.execute(
        select(User)
        .join(UserFollow, User.id == UserFollow.follower_id)
        .where(UserFollow.followed_id == user_id)
        .order_by(User.id)
    )
    return list(result.scalars().all())


async def get_following(db: AsyncSession, user_id: int) -> List[User]:
    """Get all users that a given user is following"""
    if not await user_exists(db, user_id):
        raise NotFoundError("User", "userId", user_id, error_code=error_codes.USER_NOT_FOUND)
    result = await db.execute(
        select(User)
        .join(UserFollow, User.id == UserFollow.followed_id)
        .where(UserFollow.follower_id == user_id)
        .order_by(User.id)
    )
    return list(result.scalars().all())


async def count_followers(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(UserFollow).where(UserFollow.followed_id == user_id)
    )
    return result.scalar() or 0


async def count_following(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(UserFollow).where(UserFollow.follower_id == user_id)
    )
    return result.scalar() or 0
