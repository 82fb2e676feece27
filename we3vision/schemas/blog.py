"""
Pydantic schemas for blog posts and comments.

Create schemas mark the mandatory subset required; update schemas make
every field optional and callers apply only the fields that were sent
(`model_dump(exclude_unset=True)`).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import field_validator

from we3vision.core.derived import slugify
from we3vision.models.blog import BlogCategory, BlogStatus
from we3vision.schemas.common import APIModel, StringList, trimmed_length
from we3vision.schemas.user import UserPublic

TITLE_MESSAGE = "Title must be between 5 and 100 characters"
CONTENT_MESSAGE = "Content must be at least 50 characters"
EXCERPT_MESSAGE = "Excerpt must be between 10 and 200 characters"

BLOG_FIELD_MESSAGES = {
    "category": "Please provide a valid category",
    "status": "Please provide a valid status",
    "tags": "Tags must be an array",
    "seoKeywords": "SEO keywords must be an array",
    "isFeatured": "isFeatured must be a boolean",
    "readTime": "Read time must be a positive integer",
}


def _check_title(v):
    title = trimmed_length(v, 5, 100, TITLE_MESSAGE)
    if not slugify(title):
        raise ValueError("Title must contain at least one letter or number")
    return title


class _BlogFields(APIModel):
    """Validators shared by create and update."""

    field_messages = BLOG_FIELD_MESSAGES

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def validate_title(cls, v):
        return _check_title(v)

    @field_validator("content", mode="before", check_fields=False)
    @classmethod
    def validate_content(cls, v):
        return trimmed_length(v, 50, None, CONTENT_MESSAGE)

    @field_validator("excerpt", mode="before", check_fields=False)
    @classmethod
    def validate_excerpt(cls, v):
        return trimmed_length(v, 10, 200, EXCERPT_MESSAGE)

    @field_validator("seo_title", mode="before", check_fields=False)
    @classmethod
    def validate_seo_title(cls, v):
        if v is None:
            return v
        return trimmed_length(v, 0, 60, "SEO title cannot be more than 60 characters")

    @field_validator("seo_description", mode="before", check_fields=False)
    @classmethod
    def validate_seo_description(cls, v):
        if v is None:
            return v
        return trimmed_length(v, 0, 160, "SEO description cannot be more than 160 characters")

    @field_validator("read_time", check_fields=False)
    @classmethod
    def validate_read_time(cls, v):
        if v is not None and v < 1:
            raise ValueError(BLOG_FIELD_MESSAGES["readTime"])
        return v


class BlogCreate(_BlogFields):
    title: str
    content: str
    excerpt: str
    category: BlogCategory
    tags: StringList = []
    status: BlogStatus = BlogStatus.DRAFT
    is_featured: bool = False
    read_time: Optional[int] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: StringList = []


class BlogUpdate(_BlogFields):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[BlogCategory] = None
    tags: Optional[StringList] = None
    status: Optional[BlogStatus] = None
    is_featured: Optional[bool] = None
    read_time: Optional[int] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[StringList] = None


class CommentCreate(APIModel):
    comment: str

    @field_validator("comment", mode="before")
    @classmethod
    def validate_comment(cls, v):
        return trimmed_length(v, 1, 500, "Comment must be between 1 and 500 characters")


class CommentResponse(APIModel):
    id: int
    user: Optional[UserPublic] = None
    comment: str
    created_at: Optional[datetime] = None


class BlogSummaryResponse(APIModel):
    """Blog listing entry; the body is omitted."""
    id: int
    title: str
    slug: str
    excerpt: str
    featured_image: str
    author: Optional[UserPublic] = None
    category: BlogCategory
    tags: List[str] = []
    status: BlogStatus
    is_featured: bool
    read_time: int
    views: int
    like_count: int
    comment_count: int
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BlogResponse(BlogSummaryResponse):
    content: str
    likes: List[int] = []
    comments: List[CommentResponse] = []

    @field_validator("likes", mode="before")
    @classmethod
    def like_ids(cls, v):
        return [getattr(like, "user_id", like) for like in v or []]


class LikeToggleResponse(APIModel):
    likes: List[int]
    like_count: int
    is_liked: bool
