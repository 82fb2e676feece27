"""initial_schema

Creates users, blogs (with likes and comments), jobs and assets.

Author and commenter references use ON DELETE SET NULL: removing a user
row never removes content.

Revision ID: 3f2a9c1d7e01
Revises:
Create Date: 2026-10-19 10:12:41.302114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = sa.Enum('user', 'admin', name='userrole')
BLOG_CATEGORY = sa.Enum(
    'Technology', 'Design', 'Development', 'NFT', 'Metaverse', 'AI/ML',
    'Mobile', 'Web', 'Gaming', 'AR/VR', 'Other',
    name='blogcategory',
)
BLOG_STATUS = sa.Enum('draft', 'published', 'archived', name='blogstatus')
EXPERIENCE_LEVEL = sa.Enum('Entry Level', '1-2 years', '3-5 years', '5+ years', 'Senior Level', name='experiencelevel')
DEPARTMENT = sa.Enum(
    'Engineering', 'Design', 'Marketing', 'Sales', 'Operations', 'HR', 'Finance', 'Other',
    name='department',
)
EMPLOYMENT_TYPE = sa.Enum('Full-time', 'Part-time', 'Contract', 'Internship', 'Freelance', name='employmenttype')


def upgrade() -> None:
    """Create the initial schema."""

    # 1. Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('avatar', sa.String(), nullable=True),
        sa.Column('bio', sa.String(length=500), nullable=True),
        sa.Column('role', USER_ROLE, nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2. Blogs
    op.create_table(
        'blogs',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('excerpt', sa.String(length=200), nullable=False),
        sa.Column('featured_image', sa.String(), nullable=False, server_default='/uploads/default-blog-image.jpg'),
        sa.Column('author_id', sa.Integer(), nullable=True),
        sa.Column('category', BLOG_CATEGORY, nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('status', BLOG_STATUS, nullable=False, server_default='draft'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('read_time', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seo_title', sa.String(length=60), nullable=True),
        sa.Column('seo_description', sa.String(length=160), nullable=True),
        sa.Column('seo_keywords', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_blogs_id', 'blogs', ['id'])
    op.create_index('ix_blogs_slug', 'blogs', ['slug'], unique=True)
    op.create_index('ix_blogs_author_id', 'blogs', ['author_id'])
    op.create_index('ix_blogs_status_created_at', 'blogs', ['status', 'created_at'])
    op.create_index('ix_blogs_category_status', 'blogs', ['category', 'status'])

    # 3. Likes: one row per (blog, user)
    op.create_table(
        'blog_likes',
        sa.Column('blog_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('blog_id', 'user_id'),
    )

    # 4. Comments
    op.create_table(
        'blog_comments',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('blog_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('comment', sa.String(length=500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['blog_id'], ['blogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_blog_comments_id', 'blog_comments', ['id'])
    op.create_index('ix_blog_comments_blog_id', 'blog_comments', ['blog_id'])
    op.create_index('ix_blog_comments_user_id', 'blog_comments', ['user_id'])

    # 5. Job postings
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('short_description', sa.String(length=250), nullable=False),
        sa.Column('full_description', sa.Text(), nullable=False),
        sa.Column('requirements', sa.JSON(), nullable=False),
        sa.Column('responsibilities', sa.JSON(), nullable=False),
        sa.Column('benefits', sa.JSON(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('experience', EXPERIENCE_LEVEL, nullable=False),
        sa.Column('department', DEPARTMENT, nullable=False),
        sa.Column('employment_type', EMPLOYMENT_TYPE, nullable=False),
        sa.Column('location', sa.String(length=100), nullable=False, server_default='Surat'),
        sa.Column('salary', sa.JSON(), nullable=True),
        sa.Column('is_remote', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('application_deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('apply_link', sa.String(), nullable=True),
        sa.Column('apply_email', sa.String(), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('applications', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_jobs_id', 'jobs', ['id'])
    op.create_index('ix_jobs_title', 'jobs', ['title'])
    op.create_index('ix_jobs_slug', 'jobs', ['slug'], unique=True)
    op.create_index('ix_jobs_is_active', 'jobs', ['is_active'])
    op.create_index('ix_jobs_active_priority_created', 'jobs', ['is_active', 'priority', 'created_at'])
    op.create_index('ix_jobs_department_location_type', 'jobs', ['department', 'location', 'employment_type'])

    # 6. Asset mappings
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('alt', sa.String(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_assets_id', 'assets', ['id'])
    op.create_index('ix_assets_key', 'assets', ['key'], unique=True)


def downgrade() -> None:
    """Drop everything created by upgrade()."""
    op.drop_table('assets')
    op.drop_table('jobs')
    op.drop_table('blog_comments')
    op.drop_table('blog_likes')
    op.drop_table('blogs')
    op.drop_table('users')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS employmenttype')
    op.execute('DROP TYPE IF EXISTS department')
    op.execute('DROP TYPE IF EXISTS experiencelevel')
    op.execute('DROP TYPE IF EXISTS blogstatus')
    op.execute('DROP TYPE IF EXISTS blogcategory')
    op.execute('DROP TYPE IF EXISTS userrole')
