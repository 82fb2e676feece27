"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between API routes and database operations,
following the Repository pattern.
"""

from we3vision.crud import asset, blog, job, user

__all__ = ["asset", "blog", "job", "user"]
