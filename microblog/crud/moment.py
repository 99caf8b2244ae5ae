"""
Moment CRUD operations with visibility enforcement.

Reads go through the visibility policy; updates and deletes go through the
owner-or-admin guard. The follow graph is only queried when a moment's tier
makes the answer depend on it.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import AccessDeniedError, NotFoundError
from microblog.core.visibility import (
    can_access,
    can_mutate,
    ensure_owner_or_admin,
    needs_follow_lookup,
)
from microblog.crud import follow as follow_crud
from microblog.crud.user import user_exists
from microblog.models.moment import Moment
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Visibility
from microblog.schemas.moment import MomentCreate, MomentUpdate
from microblog.utils.clock import utc_now

logger = logging.getLogger(__name__)


# Storage pass-throughs

async def get_moment(db: AsyncSession, moment_id: str) -> Optional[Moment]:
    result = await db.execute(select(Moment).where(Moment.id == str(moment_id)))
    return result.scalars().first()


async def get_moments_by_author(db: AsyncSession, author_id: int) -> List[Moment]:
    result = await db.execute(
        select(Moment).where(Moment.author_id == author_id).order_by(Moment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_all_moments(db: AsyncSession) -> List[Moment]:
    result = await db.execute(select(Moment).order_by(Moment.created_at.desc()))
    return list(result.scalars().all())


async def save_moment(db: AsyncSession, moment: Moment) -> Moment:
    db.add(moment)
    await db.commit()
    await db.refresh(moment)
    return moment


async def delete_moment(db: AsyncSession, moment: Moment) -> None:
    await db.delete(moment)
    await db.commit()


async def get_moment_or_404(db: AsyncSession, moment_id: str) -> Moment:
    moment = await get_moment(db, moment_id)
    if moment is None:
        raise NotFoundError("Moment", "id", moment_id, error_code=error_codes.MOMENT_NOT_FOUND)
    return moment


# Access decisions

async def _can_view(db: AsyncSession, moment: Moment, principal: Principal) -> bool:
    is_follower = False
    if needs_follow_lookup(moment.visibility, principal, moment.author_id):
        is_follower = await follow_crud.is_following(db, principal.user_id, moment.author_id)
    return can_access(moment.visibility, principal, moment.author_id, is_follower)


async def can_view_moment(db: AsyncSession, moment_id: str, principal: Principal) -> bool:
    moment = await get_moment_or_404(db, moment_id)
    return await _can_view(db, moment, principal)


async def can_mutate_moment(db: AsyncSession, moment_id: str, principal: Principal) -> bool:
    moment = await get_moment_or_404(db, moment_id)
    return can_mutate(principal, moment.author_id)


async def get_visible_moment(db: AsyncSession, moment_id: str, principal: Principal) -> Moment:
    moment = await get_moment_or_404(db, moment_id)
    if not await _can_view(db, moment, principal):
        logger.info(f"User {principal.user_id} denied view of moment {moment.id}")
        raise AccessDeniedError("You don't have permission to view this moment")
    return moment


async def list_visible_moments(
    db: AsyncSession,
    principal: Principal,
    author_id: Optional[int] = None,
    visibility: Optional[Visibility] = None
) -> List[Moment]:
    """
    List the moments ``principal`` may see, optionally for one author and one tier.
    Without ``author_id`` every moment in the store is a candidate.
    """
    if author_id is not None:
        if not await user_exists(db, author_id):
            raise NotFoundError("User", "id", author_id, error_code=error_codes.USER_NOT_FOUND)
        candidates = await get_moments_by_author(db, author_id)
    else:
        candidates = await get_all_moments(db)

    if visibility is not None:
        candidates = [moment for moment in candidates if moment.visibility == visibility]

    # follow lookups are memoized per author for the duration of this call
    follows_author: Dict[int, bool] = {}
    visible = []
    for moment in candidates:
        is_follower = False
        if needs_follow_lookup(moment.visibility, principal, moment.author_id):
            if moment.author_id not in follows_author:
                follows_author[moment.author_id] = await follow_crud.is_following(
                    db, principal.user_id, moment.author_id
                )
            is_follower = follows_author[moment.author_id]
        if can_access(moment.visibility, principal, moment.author_id, is_follower):
            visible.append(moment)
    return visible


# Mutations

async def create_moment(db: AsyncSession, principal: Principal, moment_in: MomentCreate) -> Moment:
    if not await user_exists(db, principal.user_id):
        raise NotFoundError("User", "id", principal.user_id, error_code=error_codes.USER_NOT_FOUND)

    moment = Moment(
        text=moment_in.text,
        author_id=principal.user_id,
        visibility=moment_in.visibility or Visibility.PUBLIC,
    )
    moment = await save_moment(db, moment)
    logger.info(f"User {principal.user_id} created moment {moment.id}")
    return moment


async def update_moment(
    db: AsyncSession,
    moment_id: str,
    principal: Principal,
    moment_in: MomentUpdate
) -> Moment:
    moment = await get_moment_or_404(db, moment_id)
    ensure_owner_or_admin(principal, moment.author_id)

    moment.text = moment_in.text
    if moment_in.visibility is not None:
        moment.visibility = moment_in.visibility
    moment.updated_at = utc_now()
    return await save_moment(db, moment)


async def remove_moment(db: AsyncSession, moment_id: str, principal: Principal) -> None:
    moment = await get_moment_or_404(db, moment_id)
    ensure_owner_or_admin(principal, moment.author_id)

    await delete_moment(db, moment)
    logger.info(f"User {principal.user_id} deleted moment {moment_id}")
