"""
Models package initialization
"""

from .user import User
from .follow import UserFollow
from .moment import Moment

__all__ = ["User", "UserFollow", "Moment"]
