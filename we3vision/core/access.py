"""
Per-resource access control for destructive operations.

Role gating (core.deps) decides who may reach a route at all; the checks
here decide whether a caller may act on one specific record.
"""

from typing import Optional

from we3vision.core.exceptions import AuthorizationError
from we3vision.models.blog import Blog, BlogComment
from we3vision.models.user import User


def can_modify_comment(user: Optional[User], comment: BlogComment, blog: Blog) -> bool:
    """
    A comment may be removed by its author, by an administrator, or by the
    owner of the blog it was posted on.
    """
    if user is None:
        return False

    is_comment_author = comment.user_id is not None and comment.user_id == user.id
    is_admin = user.is_admin
    is_blog_owner = blog.author_id is not None and blog.author_id == user.id

    return is_comment_author or is_admin or is_blog_owner


def require_comment_access(user: Optional[User], comment: BlogComment, blog: Blog) -> None:
    if not can_modify_comment(user, comment, blog):
        raise AuthorizationError("Not authorized to delete this comment")
