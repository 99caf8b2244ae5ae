"""
Visibility policy for moments and the owner-or-admin mutation guard.

Every function here is a pure decision over its arguments. Callers resolve
the follow relationship themselves, and only when ``needs_follow_lookup``
says the answer depends on it.
"""

import logging
from typing import Optional

from microblog.core.exceptions import AccessDeniedError
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Visibility

logger = logging.getLogger(__name__)


def _is_owner(principal: Principal, owner_id: Optional[int]) -> bool:
    return owner_id is not None and principal.user_id == owner_id


def can_access(
    tier: Visibility,
    principal: Optional[Principal],
    author_id: Optional[int],
    is_follower: bool
) -> bool:
    """
    Decide whether ``principal`` may view a moment of ``tier`` written by ``author_id``.

    - PUBLIC: always
    - DRAFT: admin or author
    - FOLLOWERS_ONLY: admin, author, or a follower of the author

    Anything unrecognised is denied.
    """
    if principal is None:
        return False

    if tier == Visibility.PUBLIC:
        return True
    if tier == Visibility.DRAFT:
        return principal.is_admin or _is_owner(principal, author_id)
    if tier == Visibility.FOLLOWERS_ONLY:
        return principal.is_admin or _is_owner(principal, author_id) or bool(is_follower)

    logger.warning(f"Denying access for unknown visibility tier: {tier!r}")
    return False


def needs_follow_lookup(
    tier: Visibility,
    principal: Optional[Principal],
    author_id: Optional[int]
) -> bool:
    """True only when the follow edge can change the outcome of ``can_access``."""
    if principal is None or tier != Visibility.FOLLOWERS_ONLY:
        return False
    return not (principal.is_admin or _is_owner(principal, author_id))


def can_mutate(principal: Optional[Principal], owner_id: Optional[int]) -> bool:
    """Owner-or-admin rule for updates and deletes, independent of visibility."""
    if principal is None or owner_id is None:
        return False
    return principal.is_admin or principal.user_id == owner_id


def ensure_owner_or_admin(principal: Optional[Principal], owner_id: Optional[int]) -> None:
    if not can_mutate(principal, owner_id):
        logger.info(
            f"Mutation denied for user {getattr(principal, 'user_id', None)} on resource owned by {owner_id}"
        )
        raise AccessDeniedError("You don't have permission to access this resource")
