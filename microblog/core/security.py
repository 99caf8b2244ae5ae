import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core.config import settings
from microblog.core.exceptions import StaleTokenError, UnauthenticatedError
from microblog.core.tokens import TokenService, get_token_service
from microblog.crud.user import get_user_by_id
from microblog.db.database import get_db
from microblog.schemas.auth import Principal

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error is off so a missing token goes through our own error payload
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/token",
    auto_error=False
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        # Keep timing close to a real check for unknown users
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


async def confirm_principal(db: AsyncSession, principal: Principal) -> Principal:
    """
    Re-check a token's principal against the identity store.

    The account must still exist under the same id and username, and the
    role is taken from the stored row so demotions apply immediately.
    """
    user = await get_user_by_id(db, principal.user_id)
    if user is None or user.username != principal.username:
        logger.info(f"Rejected token for missing or renamed user {principal.user_id}")
        raise StaleTokenError("Token no longer matches an existing user")
    return Principal(user_id=user.id, username=user.username, role=user.role)


async def get_current_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    if not token:
        raise UnauthenticatedError("Missing bearer token")
    principal = await token_service.verify(token)
    return await confirm_principal(db, principal)
