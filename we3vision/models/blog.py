"""
Blog database models.

A Blog owns its comments and likes. The author link is a weak reference:
removing a user row leaves their posts and comments in place with the
reference set to NULL.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, JSON, Index, func
)
from sqlalchemy.orm import relationship
from we3vision.core.database import Base
from we3vision.models.types import enum_values

DEFAULT_FEATURED_IMAGE = "/uploads/default-blog-image.jpg"


class BlogCategory(str, enum.Enum):
    TECHNOLOGY = "Technology"
    DESIGN = "Design"
    DEVELOPMENT = "Development"
    NFT = "NFT"
    METAVERSE = "Metaverse"
    AI_ML = "AI/ML"
    MOBILE = "Mobile"
    WEB = "Web"
    GAMING = "Gaming"
    AR_VR = "AR/VR"
    OTHER = "Other"


class BlogStatus(str, enum.Enum):
    """
    Blog lifecycle:

    DRAFT -> PUBLISHED -> ARCHIVED

    Only PUBLISHED posts are visible on public routes.
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class BlogLike(Base):
    """One row per (blog, user); the composite key keeps likes unique."""
    __tablename__ = "blog_likes"

    blog_id = Column(Integer, ForeignKey("blogs.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BlogComment(Base):
    __tablename__ = "blog_comments"

    id = Column(Integer, primary_key=True, index=True)
    blog_id = Column(Integer, ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    comment = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    blog = relationship("Blog", back_populates="comments")
    user = relationship("User")


class Blog(Base):
    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(200), nullable=False)
    featured_image = Column(String, default=DEFAULT_FEATURED_IMAGE, nullable=False)

    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    category = Column(Enum(BlogCategory, name="blogcategory", values_callable=enum_values), nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    status = Column(
        Enum(BlogStatus, name="blogstatus", values_callable=enum_values),
        default=BlogStatus.DRAFT,
        nullable=False,
    )
    is_featured = Column(Boolean, default=False, nullable=False)
    read_time = Column(Integer, default=5, nullable=False)
    views = Column(Integer, default=0, nullable=False)

    # SEO metadata
    seo_title = Column(String(60), nullable=True)
    seo_description = Column(String(160), nullable=True)
    seo_keywords = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    author = relationship("User")
    comments = relationship(
        "BlogComment",
        back_populates="blog",
        cascade="all, delete-orphan",
        order_by="BlogComment.id",
    )
    likes = relationship("BlogLike", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_blogs_status_created_at", "status", "created_at"),
        Index("ix_blogs_category_status", "category", "status"),
    )

    @property
    def like_user_ids(self):
        return [like.user_id for like in self.likes]

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def is_liked_by(self, user_id) -> bool:
        return user_id is not None and user_id in self.like_user_ids

    def __repr__(self):
        return f"<Blog(id={self.id}, slug='{self.slug}', status={self.status})>"
