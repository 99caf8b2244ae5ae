"""
Authentication pipeline: credential checks, login, logout and token authentication.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import error_codes
from microblog.core.exceptions import (
    BadCredentialsError,
    InvalidOperationError,
    UnauthenticatedError,
)
from microblog.core.security import confirm_principal, get_password_hash, verify_password
from microblog.core.tokens import TokenService
from microblog.crud.user import create_user, get_user_by_username, get_user_or_404, set_password
from microblog.models.user import User
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Role
from microblog.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    """Unknown usernames and wrong passwords fail with the same error"""
    user = await get_user_by_username(db, username)
    hashed_password = user.hashed_password if user else None

    if not verify_password(password, hashed_password) or user is None:
        logger.warning("Failed login attempt")
        raise BadCredentialsError()
    return user


async def login(db: AsyncSession, token_service: TokenService, username: str, password: str) -> str:
    user = await authenticate_user(db, username, password)
    logger.info(f"User {user.id} logged in")
    return token_service.issue(user.id, user.username, user.role)


async def logout(token_service: TokenService, token: Optional[str]) -> None:
    """Revoke a presented token; expired but well-formed tokens succeed as a no-op"""
    if not token:
        raise UnauthenticatedError("Missing bearer token")
    await token_service.revoke(token)


async def authenticate(db: AsyncSession, token_service: TokenService, token: Optional[str]) -> Principal:
    """Verify the token, then confirm its subject still exists with the stored role"""
    if not token or not token.strip():
        raise UnauthenticatedError("Missing bearer token")
    principal = await token_service.verify(token.strip())
    return await confirm_principal(db, principal)


async def register(db: AsyncSession, user_in: UserCreate) -> User:
    """Self-registration always creates a plain USER"""
    return await create_user(db, user_in, get_password_hash(user_in.password), role=Role.USER)


async def change_password(
    db: AsyncSession,
    principal: Principal,
    current_password: str,
    new_password: str
) -> None:
    user = await get_user_or_404(db, principal.user_id)
    if not verify_password(current_password, user.hashed_password):
        raise BadCredentialsError()
    if current_password == new_password:
        raise InvalidOperationError(
            "New password must differ from the current one",
            error_code=error_codes.PASSWORD_MUST_NOT_THE_SAME
        )
    await set_password(db, user, get_password_hash(new_password))
    logger.info(f"User {user.id} changed password")
