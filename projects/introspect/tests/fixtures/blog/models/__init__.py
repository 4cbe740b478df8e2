"""Blog models."""

from blog.models.comment import Comment
from blog.models.legacy.archive import ArchivedPost
from blog.models.post import Post
from blog.models.profile import Profile
from blog.models.role import Role, user_roles
from blog.models.user import User

__all__ = ["ArchivedPost", "Comment", "Post", "Profile", "Role", "User", "user_roles"]
