from enum import Enum


class Role(str, Enum):
    """
    System roles for access control.
    Admins bypass ownership and visibility checks.
    """
    USER = "USER"
    ADMIN = "ADMIN"


class Visibility(str, Enum):
    """
    Controls who can see a moment.
    """
    PUBLIC = "PUBLIC"  # Visible to every authenticated user
    DRAFT = "DRAFT"  # Only the author and admins
    FOLLOWERS_ONLY = "FOLLOWERS_ONLY"  # Author, admins and the author's followers
