import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from we3vision.core.database import get_db
from we3vision.core.deps import get_admin_user
from we3vision.core.exceptions import NotFoundError
from we3vision.core.responses import build_pagination, normalize_page, success_response
from we3vision.core.uploads import read_payload
from we3vision.crud import job as job_crud
from we3vision.crud.job import JobSortField, JobStatusFilter, SortOrder
from we3vision.models.job import Department, EmploymentType, ExperienceLevel, JobPosting
from we3vision.models.user import User
from we3vision.schemas.common import to_payload, validate_fields
from we3vision.schemas.job import GroupCount, JobCreate, JobResponse, JobStatsOverview, JobUpdate

router = APIRouter(prefix="/job", tags=["Careers"])
logger = logging.getLogger(__name__)


def _get_job_or_404(db: Session, job_id: int) -> JobPosting:
    job = job_crud.get_by_id(db, job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


@router.get("/")
def list_jobs(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[Department] = None,
    location: Optional[str] = None,
    employment_type: Optional[EmploymentType] = Query(None, alias="employmentType"),
    experience: Optional[ExperienceLevel] = None,
    remote: Optional[bool] = None,
    sort_by: JobSortField = Query(JobSortField.PRIORITY, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    db: Session = Depends(get_db),
):
    """
    List active job postings with filtering and pagination.

    Args:
        search: Case-insensitive match on title, descriptions and tags
        location: Case-insensitive substring match
        sortBy: priority, createdAt, updatedAt, title, views or applications
            (priority is always applied as a secondary key)
    """
    page, limit, skip = normalize_page(page, limit)
    jobs, total = job_crud.get_multi_active(
        db,
        skip=skip,
        limit=limit,
        search=search,
        department=department,
        location=location,
        employment_type=employment_type,
        experience=experience,
        remote=remote,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success_response(
        [to_payload(JobResponse, j) for j in jobs],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/admin/all")
def list_all_jobs(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[Department] = None,
    status_filter: Optional[JobStatusFilter] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """All postings, active or not, newest first."""
    page, limit, skip = normalize_page(page, limit)
    jobs, total = job_crud.get_multi_admin(
        db, skip=skip, limit=limit, search=search, department=department, status=status_filter
    )
    return success_response(
        [to_payload(JobResponse, j) for j in jobs],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/admin/stats")
def get_job_stats(
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    stats = job_crud.get_stats(db)
    return success_response({
        "overview": to_payload(JobStatsOverview, stats["overview"]),
        "byDepartment": [to_payload(GroupCount, g) for g in stats["by_department"]],
        "byEmploymentType": [to_payload(GroupCount, g) for g in stats["by_employment_type"]],
    })


@router.get("/{slug}")
def get_job(slug: str, db: Session = Depends(get_db)):
    """Retrieve an active posting by slug and count the view."""
    job = job_crud.get_active_by_slug(db, slug)
    if not job:
        raise NotFoundError("Job not found")

    job = job_crud.increment_views(db, job)
    return success_response(to_payload(JobResponse, job))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_job(
    request: Request,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """
    Create a new job posting.

    Postings with identical titles are allowed: each gets its own
    timestamped slug.
    """
    fields, _ = await read_payload(request)
    data = validate_fields(JobCreate, fields)

    job = job_crud.create(db, data)
    return success_response(to_payload(JobResponse, job))


@router.put("/{job_id}")
async def update_job(
    job_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    fields, _ = await read_payload(request)
    data = validate_fields(JobUpdate, fields)

    job = _get_job_or_404(db, job_id)
    job = job_crud.update(db, job, data)
    return success_response(to_payload(JobResponse, job))


@router.delete("/{job_id}")
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    job = _get_job_or_404(db, job_id)
    job_crud.delete(db, job)
    return success_response(message="Job deleted successfully")


@router.put("/{job_id}/toggle-status")
def toggle_job_status(
    job_id: int,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """Flip a posting between active and inactive."""
    job = _get_job_or_404(db, job_id)
    job = job_crud.toggle_status(db, job)
    return success_response(to_payload(JobResponse, job))
