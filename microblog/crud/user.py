"""
User CRUD operations: the identity store used by authentication and the follow graph.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import AlreadyExistsError, NotFoundError
from microblog.models.follow import UserFollow
from microblog.models.moment import Moment
from microblog.models.user import User
from microblog.schemas.enums import Role
from microblog.schemas.user import UserCreate, UserUpdate
from microblog.utils.clock import utc_now

logger = logging.getLogger(__name__)


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().first()


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalars().first()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.lower())
    )
    return result.scalars().first()


async def user_exists(session: AsyncSession, user_id: int) -> bool:
    result = await session.execute(select(User.id).where(User.id == user_id))
    return result.scalar_one_or_none() is not None


async def get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User", "id", user_id, error_code=error_codes.USER_NOT_FOUND)
    return user


async def list_users(session: AsyncSession, offset: int = 0, limit: int = 50) -> List[User]:
    result = await session.execute(
        select(User).order_by(User.id).offset(offset).limit(limit)
    )
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    user_in: UserCreate,
    hashed_password: str,
    role: Role = Role.USER
) -> User:
    """Create a new account; username and email must both be unused"""
    if await get_user_by_username(session, user_in.username):
        raise AlreadyExistsError("User", "username", user_in.username, error_code=error_codes.USERNAME_TAKEN)
    if await get_user_by_email(session, user_in.email):
        raise AlreadyExistsError("User", "email", user_in.email, error_code=error_codes.EMAIL_TAKEN)

    user = User(
        username=user_in.username,
        email=str(user_in.email),
        bio=user_in.bio,
        picture=user_in.picture,
        hashed_password=hashed_password,
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Created user {user.id} ({user.username})")
    return user


async def update_user(session: AsyncSession, user_id: int, user_in: UserUpdate) -> User:
    user = await get_user_or_404(session, user_id)
    changes = user_in.model_dump(exclude_unset=True)

    new_username = changes.get("username")
    if new_username and new_username != user.username:
        if await get_user_by_username(session, new_username):
            raise AlreadyExistsError("User", "username", new_username, error_code=error_codes.USERNAME_TAKEN)
    new_email = changes.get("email")
    if new_email and new_email.lower() != user.email.lower():
        if await get_user_by_email(session, new_email):
            raise AlreadyExistsError("User", "email", new_email, error_code=error_codes.EMAIL_TAKEN)

    for field, value in changes.items():
        if value is not None:
            setattr(user, field, str(value) if field == "email" else value)
    user.updated_at = utc_now()

    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def set_password(session: AsyncSession, user: User, hashed_password: str) -> None:
    user.hashed_password = hashed_password
    user.updated_at = utc_now()
    session.add(user)
    await session.commit()


async def set_role(session: AsyncSession, user: User, role: Role) -> User:
    user.role = role
    user.updated_at = utc_now()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """Delete a user together with their follow edges and moments"""
    await get_user_or_404(session, user_id)

    await session.execute(
        delete(UserFollow).where(
            or_(UserFollow.follower_id == user_id, UserFollow.followed_id == user_id)
        )
    )
    await session.execute(delete(Moment).where(Moment.author_id == user_id))
    await session.execute(delete(User).where(User.id == user_id))
    await session.commit()
    logger.info(f"Deleted user {user_id}")
