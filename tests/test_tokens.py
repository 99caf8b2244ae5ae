import pytest
from jose import jwt

from microblog.core.config import settings
from microblog.core.exceptions import (
    ExpiredTokenError,
    MalformedTokenError,
    RevokedTokenError,
    TokenRejectedError,
)
from microblog.core.tokens import TokenService, get_token_service, reset_token_service, revocation_key
from microblog.schemas.enums import Role


@pytest.mark.asyncio
async def test_issue_and_verify_round_trip(token_service):
    token = token_service.issue(7, "alice", Role.USER)

    principal = await token_service.verify(token)

    assert principal.user_id == 7
    assert principal.username == "alice"
    assert principal.role == Role.USER
    assert principal.is_admin is False


@pytest.mark.asyncio
async def test_claims_layout(token_service):
    token = token_service.issue(7, "alice", Role.ADMIN)
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "alice"
    assert claims["userId"] == 7
    assert claims["role"] == "ADMIN"
    assert claims["iss"] == "microblog"
    assert claims["exp"] - claims["iat"] == 30000


@pytest.mark.asyncio
async def test_token_valid_until_last_second(token_service, clock):
    token = token_service.issue(7, "alice", Role.USER)

    clock.advance(29999)
    assert (await token_service.verify(token)).user_id == 7

    clock.advance(1)
    with pytest.raises(ExpiredTokenError) as exc_info:
        await token_service.verify(token)
    assert exc_info.value.detail == "Token is not valid anymore"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_expires_at_matches_embedded_expiry(token_service, clock):
    token = token_service.issue(7, "alice", Role.USER)
    expires_at = token_service.expires_at(token)

    assert int(expires_at.timestamp()) == int(clock().timestamp()) + 30000


class TestRejectedTokens:
    """Every failure mode is a TokenRejectedError, with its own error code"""

    @pytest.mark.asyncio
    async def test_garbage_is_malformed(self, token_service):
        with pytest.raises(MalformedTokenError):
            await token_service.verify("not.a.jwt")
        with pytest.raises(MalformedTokenError):
            await token_service.verify("")

    @pytest.mark.asyncio
    async def test_foreign_signing_key_is_malformed(self, token_service, revocation_store):
        other = TokenService(
            secret_key="another-secret-key-that-is-long-enough-to-sign",
            revocation_store=revocation_store,
            issuer="microblog",
        )
        with pytest.raises(MalformedTokenError):
            await token_service.verify(other.issue(7, "alice", Role.USER))

    @pytest.mark.asyncio
    async def test_swapped_payload_fails_signature_check(self, token_service):
        alice = token_service.issue(7, "alice", Role.USER)
        mallory = token_service.issue(8, "mallory", Role.ADMIN)
        header, _, signature = alice.split(".")
        forged = ".".join([header, mallory.split(".")[1], signature])

        with pytest.raises(MalformedTokenError):
            await token_service.verify(forged)

    @pytest.mark.asyncio
    async def test_missing_user_id_is_malformed(self, token_service, clock):
        now = int(clock().timestamp())
        token = jwt.encode(
            {"sub": "alice", "role": "USER", "iat": now, "exp": now + 60, "iss": "microblog"},
            settings.SECRET_KEY,
            algorithm="HS256",
        )
        with pytest.raises(MalformedTokenError):
            await token_service.verify(token)

    @pytest.mark.asyncio
    async def test_unknown_role_is_malformed(self, token_service, clock):
        now = int(clock().timestamp())
        token = jwt.encode(
            {"sub": "alice", "userId": 7, "role": "ROOT", "iat": now, "exp": now + 60, "iss": "microblog"},
            settings.SECRET_KEY,
            algorithm="HS256",
        )
        with pytest.raises(MalformedTokenError):
            await token_service.verify(token)

    @pytest.mark.asyncio
    async def test_wrong_issuer_is_malformed(self, token_service, clock):
        now = int(clock().timestamp())
        token = jwt.encode(
            {"sub": "alice", "userId": 7, "role": "USER", "iat": now, "exp": now + 60, "iss": "elsewhere"},
            settings.SECRET_KEY,
            algorithm="HS256",
        )
        with pytest.raises(MalformedTokenError):
            await token_service.verify(token)

    @pytest.mark.asyncio
    async def test_expired_and_malformed_share_a_base(self, token_service, clock):
        token = token_service.issue(7, "alice", Role.USER)
        clock.advance(30001)
        with pytest.raises(TokenRejectedError):
            await token_service.verify(token)


class TestRevocation:
    @pytest.mark.asyncio
    async def test_revoked_token_is_rejected(self, token_service, revocation_store):
        token = token_service.issue(7, "alice", Role.USER)

        await token_service.revoke(token)

        assert await revocation_store.exists(revocation_key(token))
        with pytest.raises(RevokedTokenError) as exc_info:
            await token_service.verify(token)
        assert exc_info.value.error_code == "TOKEN_REVOKED"

    @pytest.mark.asyncio
    async def test_revocation_does_not_affect_other_tokens(self, token_service, clock):
        first = token_service.issue(7, "alice", Role.USER)
        clock.advance(1)
        second = token_service.issue(7, "alice", Role.USER)

        await token_service.revoke(first)

        assert (await token_service.verify(second)).user_id == 7

    @pytest.mark.asyncio
    async def test_double_revoke_is_harmless(self, token_service, revocation_store):
        token = token_service.issue(7, "alice", Role.USER)

        await token_service.revoke(token)
        await token_service.revoke(token)

        assert len(revocation_store) == 1

    @pytest.mark.asyncio
    async def test_revoking_expired_token_stores_nothing(self, token_service, revocation_store, clock):
        token = token_service.issue(7, "alice", Role.USER)
        clock.advance(30000)

        await token_service.revoke(token)

        assert len(revocation_store) == 0

    @pytest.mark.asyncio
    async def test_revocation_entry_lives_as_long_as_the_token(self, token_service, revocation_store, clock):
        token = token_service.issue(7, "alice", Role.USER)
        clock.advance(100)
        await token_service.revoke(token)

        clock.advance(29899)
        assert await revocation_store.exists(revocation_key(token))

        clock.advance(1)
        assert not await revocation_store.exists(revocation_key(token))
        # expiry now takes over
        with pytest.raises(ExpiredTokenError):
            await token_service.verify(token)

    @pytest.mark.asyncio
    async def test_revoking_garbage_is_malformed(self, token_service):
        with pytest.raises(MalformedTokenError):
            await token_service.revoke("garbage")


def test_revocation_key_is_stable_digest():
    assert revocation_key("abc") == revocation_key("abc")
    assert revocation_key("abc") != revocation_key("abd")
    assert len(revocation_key("abc")) == 64


def test_token_service_is_built_once_from_settings():
    reset_token_service()
    try:
        service = get_token_service()
        assert get_token_service() is service
    finally:
        reset_token_service()
