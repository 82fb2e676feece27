"""
Database models package.
"""

from we3vision.models.user import User, UserRole
from we3vision.models.blog import Blog, BlogCategory, BlogComment, BlogLike, BlogStatus
from we3vision.models.job import (
    JobPosting,
    ExperienceLevel,
    Department,
    EmploymentType,
    SalaryCurrency,
    SalaryPeriod,
)
from we3vision.models.asset import Asset

__all__ = [
    "User", "UserRole",
    "Blog", "BlogCategory", "BlogComment", "BlogLike", "BlogStatus",
    "JobPosting", "ExperienceLevel", "Department", "EmploymentType", "SalaryCurrency", "SalaryPeriod",
    "Asset",
]
