"""Machine-readable error codes returned in the ``error_code`` field."""

NOT_FOUND = "NOT_FOUND"
USER_NOT_FOUND = "USER_NOT_FOUND"
MOMENT_NOT_FOUND = "MOMENT_NOT_FOUND"

ALREADY_EXISTS = "ALREADY_EXISTS"
USERNAME_TAKEN = "USERNAME_TAKEN"
EMAIL_TAKEN = "EMAIL_TAKEN"

ALREADY_FOLLOWING = "ALREADY_FOLLOWING"
NOT_FOLLOWING = "NOT_FOLLOWING"

INVALID_OPERATION = "INVALID_OPERATION"
SELF_FOLLOW = "SELF_FOLLOW"
SELF_UNFOLLOW = "SELF_UNFOLLOW"
PASSWORD_MUST_NOT_THE_SAME = "PASSWORD_MUST_NOT_THE_SAME"

BAD_CREDENTIALS = "BAD_CREDENTIALS"
UNAUTHENTICATED = "UNAUTHENTICATED"
TOKEN_REJECTED = "TOKEN_REJECTED"
TOKEN_MALFORMED = "TOKEN_MALFORMED"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
TOKEN_REVOKED = "TOKEN_REVOKED"
TOKEN_STALE = "TOKEN_STALE"

ACCESS_DENIED = "ACCESS_DENIED"

DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"
