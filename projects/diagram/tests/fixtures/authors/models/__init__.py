"""Author models."""

from authors.models.post import Post
from authors.models.user import User

__all__ = ["Post", "User"]
