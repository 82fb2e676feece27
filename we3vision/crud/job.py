"""
CRUD operations for JobPosting model.

Implements the Repository pattern to encapsulate all database operations
for job postings, providing a clean interface for the API layer.

Job slugs are the slugified title plus a millisecond timestamp, so two
postings with the same title never conflict. A same-millisecond collision
at commit is retried with the next millisecond.
"""

import enum
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, case, cast, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from we3vision.core.derived import current_timestamp_ms, generate_job_slug
from we3vision.core.exceptions import UnexpectedError
from we3vision.models.job import Department, EmploymentType, ExperienceLevel, JobPosting
from we3vision.schemas.job import JobCreate, JobUpdate

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 5
LIST_FIELDS = ("requirements", "responsibilities", "benefits", "tags")


class JobSortField(str, enum.Enum):
    PRIORITY = "priority"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    TITLE = "title"
    VIEWS = "views"
    APPLICATIONS = "applications"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class JobStatusFilter(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


_SORT_COLUMNS = {
    JobSortField.PRIORITY: JobPosting.priority,
    JobSortField.CREATED_AT: JobPosting.created_at,
    JobSortField.UPDATED_AT: JobPosting.updated_at,
    JobSortField.TITLE: JobPosting.title,
    JobSortField.VIEWS: JobPosting.views,
    JobSortField.APPLICATIONS: JobPosting.applications,
}


def _search_filter(search: str):
    pattern = f"%{search}%"
    return or_(
        JobPosting.title.ilike(pattern),
        JobPosting.short_description.ilike(pattern),
        JobPosting.full_description.ilike(pattern),
        cast(JobPosting.tags, String).ilike(pattern),
    )


def _save_with_unique_slug(db: Session, job: JobPosting, changes: Dict[str, Any]) -> JobPosting:
    """
    Apply `changes`, derive a timestamped slug and commit.

    On a slug collision the session is rolled back, so the changes are
    re-applied before each attempt.
    """
    timestamp = current_timestamp_ms()
    for attempt in range(MAX_SLUG_ATTEMPTS):
        for field, value in changes.items():
            setattr(job, field, value)
        job.slug = generate_job_slug(job.title, timestamp + attempt)
        db.add(job)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning(f"Job slug {job.slug} already taken, retrying: {exc.orig}")
            continue
        db.refresh(job)
        return job

    raise UnexpectedError("Could not generate a unique job slug")


def _record_fields(data, exclude_unset: bool) -> Dict[str, Any]:
    fields = data.model_dump(exclude_unset=exclude_unset, exclude={"salary"})
    if not exclude_unset or "salary" in data.model_fields_set:
        fields["salary"] = data.salary.to_record() if data.salary else None
    return fields


def create(db: Session, job_data: JobCreate) -> JobPosting:
    """
    Create a new job posting.

    Args:
        db: Database session
        job_data: Validated job creation data

    Returns:
        Created JobPosting with id and slug
    """
    job = _save_with_unique_slug(db, JobPosting(), _record_fields(job_data, exclude_unset=False))
    logger.info(f"Created job {job.id} ({job.slug})")
    return job


def update(db: Session, job: JobPosting, job_data: JobUpdate) -> JobPosting:
    """
    Apply the fields present in the request.

    A changed title derives a fresh slug; salary is replaced as a whole.
    """
    changes = _record_fields(job_data, exclude_unset=True)

    # An explicit null clears a list rather than storing NULL
    for field in LIST_FIELDS:
        if field in changes and changes[field] is None:
            changes[field] = []

    if "title" in changes and changes["title"] != job.title:
        return _save_with_unique_slug(db, job, changes)

    for field, value in changes.items():
        setattr(job, field, value)
    db.commit()
    db.refresh(job)
    return job


def get_by_id(db: Session, job_id: int) -> Optional[JobPosting]:
    return db.query(JobPosting).filter(JobPosting.id == job_id).first()


def get_active_by_slug(db: Session, slug: str) -> Optional[JobPosting]:
    return (
        db.query(JobPosting)
        .filter(JobPosting.slug == slug, JobPosting.is_active.is_(True))
        .first()
    )


def get_multi_active(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[Department] = None,
    location: Optional[str] = None,
    employment_type: Optional[EmploymentType] = None,
    experience: Optional[ExperienceLevel] = None,
    remote: Optional[bool] = None,
    sort_by: JobSortField = JobSortField.PRIORITY,
    sort_order: SortOrder = SortOrder.DESC,
) -> Tuple[List[JobPosting], int]:
    """
    Active postings for the public board.

    Results are ordered by `sort_by`; priority (descending) is always
    applied as the secondary key.
    """
    query = db.query(JobPosting).filter(JobPosting.is_active.is_(True))

    if search:
        query = query.filter(_search_filter(search))
    if department:
        query = query.filter(JobPosting.department == department)
    if location:
        query = query.filter(JobPosting.location.ilike(f"%{location}%"))
    if employment_type:
        query = query.filter(JobPosting.employment_type == employment_type)
    if experience:
        query = query.filter(JobPosting.experience == experience)
    if remote is not None:
        query = query.filter(JobPosting.is_remote.is_(remote))

    column = _SORT_COLUMNS[sort_by]
    ordering = [column.desc() if sort_order == SortOrder.DESC else column.asc()]
    if sort_by != JobSortField.PRIORITY:
        ordering.append(JobPosting.priority.desc())
    ordering.append(JobPosting.id.desc())

    total = query.count()
    jobs = query.order_by(*ordering).offset(skip).limit(limit).all()
    return jobs, total


def get_multi_admin(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[Department] = None,
    status: Optional[JobStatusFilter] = None,
) -> Tuple[List[JobPosting], int]:
    """Every posting, newest first, optionally filtered by active/inactive."""
    query = db.query(JobPosting)

    if search:
        query = query.filter(_search_filter(search))
    if department:
        query = query.filter(JobPosting.department == department)
    if status is not None:
        query = query.filter(JobPosting.is_active.is_(status == JobStatusFilter.ACTIVE))

    total = query.count()
    jobs = (
        query.order_by(JobPosting.created_at.desc(), JobPosting.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return jobs, total


def increment_views(db: Session, job: JobPosting) -> JobPosting:
    db.query(JobPosting).filter(JobPosting.id == job.id).update(
        {JobPosting.views: JobPosting.views + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(job)
    return job


def toggle_status(db: Session, job: JobPosting) -> JobPosting:
    job.is_active = not job.is_active
    db.commit()
    db.refresh(job)
    logger.info(f"Job {job.id} is now {'active' if job.is_active else 'inactive'}")
    return job


def delete(db: Session, job: JobPosting) -> None:
    db.delete(job)
    db.commit()
    logger.info(f"Deleted job {job.id}")


def _group_counts(db: Session, column) -> List[Dict[str, Any]]:
    count = func.count(JobPosting.id)
    rows = db.query(column, count).group_by(column).order_by(count.desc()).all()
    return [
        {"id": value.value if isinstance(value, enum.Enum) else value, "count": total}
        for value, total in rows
    ]


def get_stats(db: Session) -> Dict[str, Any]:
    """Overview totals plus posting counts per department and employment type."""
    total_jobs, active_jobs, total_views, total_applications = db.query(
        func.count(JobPosting.id),
        func.coalesce(func.sum(case((JobPosting.is_active.is_(True), 1), else_=0)), 0),
        func.coalesce(func.sum(JobPosting.views), 0),
        func.coalesce(func.sum(JobPosting.applications), 0),
    ).one()

    return {
        "overview": {
            "total_jobs": total_jobs,
            "active_jobs": active_jobs,
            "inactive_jobs": total_jobs - active_jobs,
            "total_views": total_views,
            "total_applications": total_applications,
        },
        "by_department": _group_counts(db, JobPosting.department),
        "by_employment_type": _group_counts(db, JobPosting.employment_type),
    }
