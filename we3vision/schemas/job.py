import math
from datetime import datetime
from typing import Any, Dict, List, Optional
import re

from pydantic import EmailStr, computed_field, field_validator
from pydantic.alias_generators import to_camel

from we3vision.core.derived import NUMERIC_PATTERN, format_salary_range, is_job_open
from we3vision.models.job import (
    Department,
    EmploymentType,
    ExperienceLevel,
    SalaryCurrency,
    SalaryPeriod,
)
from we3vision.schemas.common import APIModel, StringList, blank_to_none, parse_iso8601, trimmed_length

_URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

JOB_FIELD_MESSAGES = {
    "experience": "Invalid experience level",
    "department": "Invalid department",
    "employmentType": "Invalid employment type",
    "salary.currency": "Invalid currency",
    "salary.period": "Invalid salary period",
    "salary": "Salary must be an object",
    "applyEmail": "Invalid application email",
    "priority": "Priority must be a non-negative integer",
    "isRemote": "isRemote must be a boolean",
    "isActive": "isActive must be a boolean",
}


def _to_amount(value: Any, message: str) -> Optional[float]:
    """Accept numbers and numeric strings; '' means absent."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, str) and not NUMERIC_PATTERN.match(value):
        raise ValueError(message)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(message)
    if not math.isfinite(number) or number < 0:
        raise ValueError(message)
    return int(number) if number.is_integer() else number


class SalaryInput(APIModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: SalaryCurrency = SalaryCurrency.INR
    period: SalaryPeriod = SalaryPeriod.MONTHLY

    field_messages = JOB_FIELD_MESSAGES

    @field_validator("min", mode="before")
    @classmethod
    def validate_min(cls, v):
        return _to_amount(v, "Minimum salary must be a number")

    @field_validator("max", mode="before")
    @classmethod
    def validate_max(cls, v):
        return _to_amount(v, "Maximum salary must be a number")

    def to_record(self) -> Optional[Dict[str, Any]]:
        """Stored form of the salary, or None when no bound was given."""
        if self.min is None and self.max is None:
            return None
        record = self.model_dump(mode="json")
        for bound in ("min", "max"):
            value = record[bound]
            if isinstance(value, float) and value.is_integer():
                record[bound] = int(value)
        return record


class _JobFields(APIModel):
    """Validators shared by create and update."""

    field_messages = JOB_FIELD_MESSAGES

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def validate_title(cls, v):
        return trimmed_length(v, 3, 100, "Title must be between 3 and 100 characters")

    @field_validator("short_description", mode="before", check_fields=False)
    @classmethod
    def validate_short_description(cls, v):
        return trimmed_length(v, 10, 250, "Short description must be between 10 and 250 characters")

    @field_validator("full_description", mode="before", check_fields=False)
    @classmethod
    def validate_full_description(cls, v):
        return trimmed_length(v, 50, None, "Full description must be at least 50 characters")

    @field_validator("location", mode="before", check_fields=False)
    @classmethod
    def validate_location(cls, v):
        return trimmed_length(v, 2, 100, "Location must be between 2 and 100 characters")

    @field_validator("salary", mode="before", check_fields=False)
    @classmethod
    def validate_salary(cls, v):
        if isinstance(v, dict) and all(blank_to_none(v.get(k)) is None for k in ("min", "max")):
            return None
        return v

    @field_validator("apply_link", mode="before", check_fields=False)
    @classmethod
    def validate_apply_link(cls, v):
        v = blank_to_none(v)
        if v is None:
            return None
        if not isinstance(v, str) or not _URL_PATTERN.match(v.strip()):
            raise ValueError("Invalid application link URL")
        return v.strip()

    @field_validator("apply_email", mode="before", check_fields=False)
    @classmethod
    def validate_apply_email(cls, v):
        return blank_to_none(v)

    @field_validator("application_deadline", mode="before", check_fields=False)
    @classmethod
    def validate_deadline(cls, v):
        return parse_iso8601(blank_to_none(v), "Invalid deadline date format")

    @field_validator(
        "experience", "department", "employment_type", "is_remote", "is_active", "priority",
        mode="before", check_fields=False,
    )
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{to_camel(info.field_name)} cannot be null")
        return v

    @field_validator("priority", check_fields=False)
    @classmethod
    def validate_priority(cls, v):
        if v is not None and v < 0:
            raise ValueError(JOB_FIELD_MESSAGES["priority"])
        return v


class JobCreate(_JobFields):
    """Schema for creating a new job posting"""
    title: str
    short_description: str
    full_description: str
    requirements: StringList = []
    responsibilities: StringList = []
    benefits: StringList = []
    experience: ExperienceLevel
    department: Department
    employment_type: EmploymentType
    location: str
    salary: Optional[SalaryInput] = None
    is_remote: bool = False
    is_active: bool = True
    priority: int = 0
    application_deadline: Optional[datetime] = None
    apply_link: Optional[str] = None
    apply_email: Optional[EmailStr] = None
    tags: StringList = []


class JobUpdate(_JobFields):
    """Every field optional; only fields present in the request are applied."""
    title: Optional[str] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    requirements: Optional[StringList] = None
    responsibilities: Optional[StringList] = None
    benefits: Optional[StringList] = None
    experience: Optional[ExperienceLevel] = None
    department: Optional[Department] = None
    employment_type: Optional[EmploymentType] = None
    location: Optional[str] = None
    salary: Optional[SalaryInput] = None
    is_remote: Optional[bool] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None
    application_deadline: Optional[datetime] = None
    apply_link: Optional[str] = None
    apply_email: Optional[EmailStr] = None
    tags: Optional[StringList] = None


class JobResponse(APIModel):
    """Job posting as returned by the API, with derived fields recomputed."""
    id: int
    title: str
    slug: str
    short_description: str
    full_description: str
    requirements: List[str] = []
    responsibilities: List[str] = []
    benefits: List[str] = []
    experience: ExperienceLevel
    department: Department
    employment_type: EmploymentType
    location: str
    salary: Optional[Dict[str, Any]] = None
    is_remote: bool
    is_active: bool
    priority: int
    application_deadline: Optional[datetime] = None
    apply_link: Optional[str] = None
    apply_email: Optional[str] = None
    tags: List[str] = []
    views: int
    applications: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="salaryRange")
    @property
    def salary_range(self) -> str:
        return format_salary_range(self.salary)

    @computed_field(alias="isOpen")
    @property
    def is_open(self) -> bool:
        return is_job_open(self.is_active, self.application_deadline)


class JobStatsOverview(APIModel):
    total_jobs: int = 0
    active_jobs: int = 0
    inactive_jobs: int = 0
    total_views: int = 0
    total_applications: int = 0


class GroupCount(APIModel):
    id: Optional[str] = None
    count: int
