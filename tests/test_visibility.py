import pytest

from microblog.core.exceptions import AccessDeniedError
from microblog.core.visibility import (
    can_access,
    can_mutate,
    ensure_owner_or_admin,
    needs_follow_lookup,
)
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Role, Visibility

AUTHOR_ID = 1

author = Principal(user_id=AUTHOR_ID, username="author", role=Role.USER)
stranger = Principal(user_id=2, username="stranger", role=Role.USER)
admin = Principal(user_id=3, username="admin", role=Role.ADMIN)


@pytest.mark.parametrize(
    "tier, principal, is_follower, expected",
    [
        # PUBLIC is visible to any authenticated caller
        (Visibility.PUBLIC, stranger, False, True),
        (Visibility.PUBLIC, stranger, True, True),
        (Visibility.PUBLIC, author, False, True),
        (Visibility.PUBLIC, admin, False, True),
        # DRAFT: author and admins only, following does not help
        (Visibility.DRAFT, stranger, False, False),
        (Visibility.DRAFT, stranger, True, False),
        (Visibility.DRAFT, author, False, True),
        (Visibility.DRAFT, admin, False, True),
        # FOLLOWERS_ONLY: author, admins and followers
        (Visibility.FOLLOWERS_ONLY, stranger, False, False),
        (Visibility.FOLLOWERS_ONLY, stranger, True, True),
        (Visibility.FOLLOWERS_ONLY, author, False, True),
        (Visibility.FOLLOWERS_ONLY, admin, False, True),
    ],
)
def test_can_access_truth_table(tier, principal, is_follower, expected):
    assert can_access(tier, principal, AUTHOR_ID, is_follower) is expected


def test_can_access_denies_unknown_tier():
    assert can_access("ARCHIVED", admin, AUTHOR_ID, True) is False


def test_can_access_denies_missing_principal():
    assert can_access(Visibility.PUBLIC, None, AUTHOR_ID, False) is False


def test_draft_with_unknown_author_is_admin_only():
    assert can_access(Visibility.DRAFT, stranger, None, False) is False
    assert can_access(Visibility.DRAFT, admin, None, False) is True


class TestNeedsFollowLookup:
    """The follow graph is only consulted when the edge can change the outcome"""

    def test_only_followers_only_tier_needs_lookup(self):
        assert needs_follow_lookup(Visibility.FOLLOWERS_ONLY, stranger, AUTHOR_ID) is True
        assert needs_follow_lookup(Visibility.PUBLIC, stranger, AUTHOR_ID) is False
        assert needs_follow_lookup(Visibility.DRAFT, stranger, AUTHOR_ID) is False

    def test_owner_and_admin_skip_lookup(self):
        assert needs_follow_lookup(Visibility.FOLLOWERS_ONLY, author, AUTHOR_ID) is False
        assert needs_follow_lookup(Visibility.FOLLOWERS_ONLY, admin, AUTHOR_ID) is False


class TestMutationGuard:
    def test_owner_and_admin_can_mutate(self):
        assert can_mutate(author, AUTHOR_ID) is True
        assert can_mutate(admin, AUTHOR_ID) is True

    def test_other_users_cannot_mutate(self):
        assert can_mutate(stranger, AUTHOR_ID) is False

    def test_unknown_owner_is_denied_even_for_admin(self):
        assert can_mutate(admin, None) is False

    def test_ensure_owner_or_admin_raises_access_denied(self):
        with pytest.raises(AccessDeniedError) as exc_info:
            ensure_owner_or_admin(stranger, AUTHOR_ID)
        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "ACCESS_DENIED"

    def test_ensure_owner_or_admin_allows_owner(self):
        ensure_owner_or_admin(author, AUTHOR_ID)
        ensure_owner_or_admin(admin, AUTHOR_ID)
