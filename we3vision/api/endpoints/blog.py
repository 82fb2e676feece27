"""
Blog endpoints.

Public readers see published posts only; administrators manage every
post. Likes and comments require a signed-in user, and a comment may be
deleted by its author, an administrator or the owner of the post.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from we3vision.core.access import require_comment_access
from we3vision.core.database import get_db
from we3vision.core.deps import get_admin_user, get_current_user, get_optional_user
from we3vision.core.exceptions import APIError, NotFoundError
from we3vision.core.responses import build_pagination, normalize_page, success_response
from we3vision.core.storage import StorageBackend, get_storage
from we3vision.core.uploads import prepare_uploads, read_payload, save_uploads
from we3vision.crud import blog as blog_crud
from we3vision.models.blog import Blog, BlogCategory
from we3vision.models.user import User
from we3vision.schemas.blog import (
    BlogCreate,
    BlogResponse,
    BlogSummaryResponse,
    BlogUpdate,
    CommentCreate,
    CommentResponse,
    LikeToggleResponse,
)
from we3vision.schemas.common import to_payload, validate_fields

router = APIRouter(prefix="/blog", tags=["Blog"])
logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"


def _get_blog_or_404(db: Session, blog_id: int) -> Blog:
    blog = blog_crud.get_by_id(db, blog_id)
    if not blog:
        raise NotFoundError("Blog not found")
    return blog


def _comments_payload(blog: Blog) -> list:
    return [to_payload(CommentResponse, comment) for comment in blog.comments]


async def _save_blog(request: Request, storage: StorageBackend, schema, persist):
    """
    Shared create/update flow: intake the optional image, validate fields,
    then persist. A stored image is removed again if persisting fails.
    """
    fields, files = await read_payload(request)
    prepared = await prepare_uploads(files.get(IMAGE_FIELD, []), max_files=1)
    data = validate_fields(schema, fields)

    stored = save_uploads(storage, prepared, IMAGE_FIELD)
    featured_image = stored[0]["url"] if stored else None
    try:
        return persist(data, featured_image)
    except APIError:
        for record in stored:
            storage.delete_file(record["filename"])
        raise


@router.get("/")
def list_blogs(
    page: int = 1,
    limit: int = 10,
    category: Optional[BlogCategory] = None,
    author: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Published posts, newest first. The body is omitted from listings."""
    page, limit, skip = normalize_page(page, limit)
    blogs, total = blog_crud.get_multi_published(
        db, skip=skip, limit=limit, category=category, author_id=author, search=search
    )
    return success_response(
        [to_payload(BlogSummaryResponse, b) for b in blogs],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/featured")
def list_featured(db: Session = Depends(get_db)):
    blogs = blog_crud.get_featured(db)
    return success_response([to_payload(BlogResponse, b) for b in blogs])


@router.get("/admin/all")
def list_all_blogs(
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """Every post including drafts and archived ones."""
    page, limit, skip = normalize_page(page, limit)
    blogs, total = blog_crud.get_multi_all(db, skip=skip, limit=limit)
    return success_response(
        [to_payload(BlogResponse, b) for b in blogs],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{slug}")
def get_blog(
    slug: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    A single published post. Counts a view, and reports whether the caller
    (if signed in) has liked it.
    """
    blog = blog_crud.get_published_by_slug(db, slug)
    if not blog:
        raise NotFoundError("Blog not found")

    blog = blog_crud.increment_views(db, blog)

    data = to_payload(BlogResponse, blog)
    data["isLiked"] = blog.is_liked_by(current_user.id if current_user else None)
    return success_response(data)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_blog(
    request: Request,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    admin_user: User = Depends(get_admin_user),
):
    """Create a post (JSON or multipart with an optional `image`)."""
    blog = await _save_blog(
        request,
        storage,
        BlogCreate,
        lambda data, image: blog_crud.create(db, data, author_id=admin_user.id, featured_image=image),
    )
    return success_response(to_payload(BlogResponse, blog))


@router.put("/{blog_id}")
async def update_blog(
    blog_id: int,
    request: Request,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    admin_user: User = Depends(get_admin_user),
):
    blog = _get_blog_or_404(db, blog_id)
    blog = await _save_blog(
        request,
        storage,
        BlogUpdate,
        lambda data, image: blog_crud.update(db, blog, data, featured_image=image),
    )
    return success_response(to_payload(BlogResponse, blog))


@router.delete("/{blog_id}")
def delete_blog(
    blog_id: int,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    blog = _get_blog_or_404(db, blog_id)
    blog_crud.delete(db, blog)
    return success_response(message="Blog deleted successfully")


@router.post("/{blog_id}/like")
def toggle_like(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like the post, or remove the caller's like if present."""
    blog = _get_blog_or_404(db, blog_id)
    liked = blog_crud.toggle_like(db, blog, current_user.id)
    return success_response(to_payload(LikeToggleResponse, {
        "likes": blog.like_user_ids,
        "like_count": blog.like_count,
        "is_liked": liked,
    }))


@router.post("/{blog_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    blog_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a comment and return the post's comments."""
    fields, _ = await read_payload(request)
    data = validate_fields(CommentCreate, fields)

    blog = _get_blog_or_404(db, blog_id)
    blog_crud.add_comment(db, blog, current_user.id, data.comment)
    return success_response(_comments_payload(blog))


@router.delete("/{blog_id}/comment/{comment_id}")
def delete_comment(
    blog_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Remove a comment.

    Checked in order: identifier shape (400), existence of post and
    comment (404), then whether the caller may delete it (403).
    """
    blog = blog_crud.get_by_id(db, blog_id)
    comment = blog_crud.get_comment(db, blog_id, comment_id) if blog else None
    if not blog or not comment:
        raise NotFoundError("Blog or comment not found")

    require_comment_access(current_user, comment, blog)

    blog_crud.delete_comment(db, blog, comment)
    logger.info(f"User {current_user.id} deleted comment {comment_id} on blog {blog_id}")
    return success_response(_comments_payload(blog))
