"""
CRUD operations for blogs, their likes and comments.

Blog slugs are strictly unique: a title that normalizes to an existing
slug is rejected with a ConflictError, whether the duplicate is found up
front or only surfaces as an IntegrityError at commit (concurrent create).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from we3vision.core.derived import slugify
from we3vision.core.exceptions import ConflictError, conflict_from_integrity_error
from we3vision.models.blog import Blog, BlogComment, BlogLike, BlogStatus
from we3vision.schemas.blog import BlogCreate, BlogUpdate

logger = logging.getLogger(__name__)

DUPLICATE_SLUG_MESSAGE = "A blog with this title already exists. Please use a unique title."
ALREADY_LIKED_MESSAGE = "You have already liked this blog"
FEATURED_LIMIT = 6


def _with_relations(query):
    return query.options(
        selectinload(Blog.author),
        selectinload(Blog.likes),
        selectinload(Blog.comments).selectinload(BlogComment.user),
    )


def _newest_first(query):
    return query.order_by(Blog.created_at.desc(), Blog.id.desc())


def get_by_id(db: Session, blog_id: int) -> Optional[Blog]:
    return db.query(Blog).filter(Blog.id == blog_id).first()


def get_published_by_slug(db: Session, slug: str) -> Optional[Blog]:
    query = db.query(Blog).filter(Blog.slug == slug, Blog.status == BlogStatus.PUBLISHED)
    return _with_relations(query).first()


def get_multi_published(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    category: Optional[str] = None,
    author_id: Optional[int] = None,
    search: Optional[str] = None,
) -> Tuple[List[Blog], int]:
    """
    Published blogs, newest first, with optional filters.

    `search` matches title, content or tags, case-insensitively.
    """
    query = db.query(Blog).filter(Blog.status == BlogStatus.PUBLISHED)

    if category:
        query = query.filter(Blog.category == category)
    if author_id is not None:
        query = query.filter(Blog.author_id == author_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Blog.title.ilike(pattern),
            Blog.content.ilike(pattern),
            cast(Blog.tags, String).ilike(pattern),
        ))

    total = query.count()
    blogs = _with_relations(_newest_first(query)).offset(skip).limit(limit).all()
    return blogs, total


def get_featured(db: Session, limit: int = FEATURED_LIMIT) -> List[Blog]:
    query = db.query(Blog).filter(Blog.status == BlogStatus.PUBLISHED, Blog.is_featured.is_(True))
    return _with_relations(_newest_first(query)).limit(limit).all()


def get_multi_all(db: Session, skip: int = 0, limit: int = 10) -> Tuple[List[Blog], int]:
    """Every blog regardless of status (admin listing)."""
    query = db.query(Blog)
    total = query.count()
    blogs = _with_relations(_newest_first(query)).offset(skip).limit(limit).all()
    return blogs, total


def _ensure_slug_available(db: Session, slug: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Blog.id).filter(Blog.slug == slug)
    if exclude_id is not None:
        query = query.filter(Blog.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(DUPLICATE_SLUG_MESSAGE, field="slug", value=slug)


def _commit_blog(db: Session, blog: Blog) -> Blog:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Only the slug index maps to a conflict; anything else is a server error
        if "slug" not in str(exc.orig):
            raise
        raise conflict_from_integrity_error(exc, "slug", blog.slug, DUPLICATE_SLUG_MESSAGE)
    db.refresh(blog)
    return blog


def create(db: Session, data: BlogCreate, author_id: Optional[int], featured_image: Optional[str] = None) -> Blog:
    """
    Create a blog owned by `author_id`.

    Raises:
        ConflictError: the derived slug is already taken
    """
    fields: Dict[str, Any] = data.model_dump(exclude_none=True)
    slug = slugify(data.title)
    _ensure_slug_available(db, slug)

    blog = Blog(**fields, slug=slug, author_id=author_id)
    if featured_image:
        blog.featured_image = featured_image

    db.add(blog)
    blog = _commit_blog(db, blog)
    logger.info(f"Created blog {blog.id} ({blog.slug})")
    return blog


def update(db: Session, blog: Blog, data: BlogUpdate, featured_image: Optional[str] = None) -> Blog:
    """Apply only the fields present in the request; a new title re-derives the slug."""
    changes = data.model_dump(exclude_unset=True)

    # Explicit nulls for required columns are ignored
    for field in ("title", "content", "excerpt", "category", "status", "is_featured", "read_time", "tags", "seo_keywords"):
        if field in changes and changes[field] is None:
            del changes[field]

    if "title" in changes:
        slug = slugify(changes["title"])
        if slug != blog.slug:
            _ensure_slug_available(db, slug, exclude_id=blog.id)
        blog.slug = slug

    for field, value in changes.items():
        setattr(blog, field, value)
    if featured_image:
        blog.featured_image = featured_image

    return _commit_blog(db, blog)


def delete(db: Session, blog: Blog) -> None:
    db.delete(blog)
    db.commit()
    logger.info(f"Deleted blog {blog.id}")


def increment_views(db: Session, blog: Blog) -> Blog:
    db.query(Blog).filter(Blog.id == blog.id).update(
        {Blog.views: Blog.views + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(blog)
    return blog


def toggle_like(db: Session, blog: Blog, user_id: int) -> bool:
    """
    Like the blog, or remove an existing like. Returns whether it is now liked.

    Raises:
        ConflictError: a concurrent request inserted the same like first
    """
    existing = db.query(BlogLike).filter(BlogLike.blog_id == blog.id, BlogLike.user_id == user_id).first()
    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(BlogLike(blog_id=blog.id, user_id=user_id))
        liked = True
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict_from_integrity_error(exc, "user", user_id, ALREADY_LIKED_MESSAGE)
    db.refresh(blog)
    return liked


def add_comment(db: Session, blog: Blog, user_id: int, text: str) -> BlogComment:
    comment = BlogComment(blog_id=blog.id, user_id=user_id, comment=text)
    db.add(comment)
    db.commit()
    db.refresh(blog)
    return comment


def get_comment(db: Session, blog_id: int, comment_id: int) -> Optional[BlogComment]:
    return (
        db.query(BlogComment)
        .filter(BlogComment.id == comment_id, BlogComment.blog_id == blog_id)
        .first()
    )


def delete_comment(db: Session, blog: Blog, comment: BlogComment) -> None:
    db.delete(comment)
    db.commit()
    db.refresh(blog)
