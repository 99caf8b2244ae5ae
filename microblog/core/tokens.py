"""
Signed, stateless access tokens with explicit revocation.

Tokens are HS256 JWTs carrying the username as ``sub`` plus ``userId`` and
``role``. Verification checks, in order: signature and structure, expiry,
then the revocation store.
"""

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt

from microblog.core.config import settings
from microblog.core.exceptions import (
    ExpiredTokenError,
    MalformedTokenError,
    RevokedTokenError,
)
from microblog.core.revocation import REVOKED_MARKER, RevocationStore, get_revocation_store
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Role
from microblog.utils.clock import utc_now

logger = logging.getLogger(__name__)


def revocation_key(token: str) -> str:
    """Stable identifier for a token in the revocation store"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenService:
    def __init__(
        self,
        secret_key: str,
        revocation_store: RevocationStore,
        expires_in_seconds: int = 30000,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._secret_key = secret_key
        self._revocation_store = revocation_store
        self._expires_in = timedelta(seconds=expires_in_seconds)
        self._algorithm = algorithm
        self._issuer = issuer
        self._clock = clock

    def _now_ts(self) -> int:
        return int(self._clock().timestamp())

    def issue(self, user_id: int, username: str, role: Role) -> str:
        now = self._now_ts()
        payload: Dict[str, Any] = {
            "sub": username,
            "userId": user_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + int(self._expires_in.total_seconds()),
        }
        if self._issuer:
            payload["iss"] = self._issuer

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def expires_at(self, token: str) -> datetime:
        """Embedded expiry of a well-formed token, whether or not it has passed"""
        claims = self._decode(token)
        return datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

    def _decode(self, token: str) -> Dict[str, Any]:
        """Verify the signature and claim structure; expiry is checked by the caller."""
        if not token or not isinstance(token, str):
            raise MalformedTokenError("Invalid JWT")
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise MalformedTokenError(f"Invalid JWT: {e}") from e

        if not isinstance(claims.get("sub"), str) or not claims["sub"]:
            raise MalformedTokenError("Invalid JWT: missing subject")
        user_id = claims.get("userId")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise MalformedTokenError("Invalid JWT: missing user id")
        if not isinstance(claims.get("exp"), int):
            raise MalformedTokenError("Invalid JWT: missing expiry")
        try:
            Role(claims.get("role"))
        except ValueError as e:
            raise MalformedTokenError("Invalid JWT: unknown role") from e
        return claims

    async def verify(self, token: str) -> Principal:
        claims = self._decode(token)

        if self._now_ts() >= claims["exp"]:
            raise ExpiredTokenError("Token is not valid anymore")

        if await self._revocation_store.exists(revocation_key(token)):
            raise RevokedTokenError("Token has been revoked")

        return Principal(
            user_id=claims["userId"],
            username=claims["sub"],
            role=Role(claims["role"]),
        )

    async def revoke(self, token: str) -> None:
        claims = self._decode(token)

        ttl = claims["exp"] - self._now_ts()
        if ttl <= 0:
            # already unusable
            return

        await self._revocation_store.put(revocation_key(token), REVOKED_MARKER, ttl)
        logger.info(f"Revoked token for user {claims['userId']} ({ttl}s remaining)")


_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """FastAPI dependency returning the process-wide token service"""
    global _token_service
    if _token_service is None:
        _token_service = TokenService(
            secret_key=settings.SECRET_KEY,
            revocation_store=get_revocation_store(),
            expires_in_seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS,
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
        )
    return _token_service


def reset_token_service() -> None:
    global _token_service
    _token_service = None
