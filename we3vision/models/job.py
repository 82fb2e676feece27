import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, JSON, Index, func
from we3vision.core.database import Base
from we3vision.models.types import enum_values


class ExperienceLevel(str, enum.Enum):
    ENTRY_LEVEL = "Entry Level"
    ONE_TO_TWO_YEARS = "1-2 years"
    THREE_TO_FIVE_YEARS = "3-5 years"
    FIVE_PLUS_YEARS = "5+ years"
    SENIOR_LEVEL = "Senior Level"


class Department(str, enum.Enum):
    ENGINEERING = "Engineering"
    DESIGN = "Design"
    MARKETING = "Marketing"
    SALES = "Sales"
    OPERATIONS = "Operations"
    HR = "HR"
    FINANCE = "Finance"
    OTHER = "Other"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"
    FREELANCE = "Freelance"


class SalaryCurrency(str, enum.Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class SalaryPeriod(str, enum.Enum):
    HOURLY = "hourly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class JobPosting(Base):
    """
    A job listing on the careers board.

    `salary` is a JSON sub-record ({min, max, currency, period}). The store
    does not enforce numeric amounts, so readers must tolerate bad values.
    Whether a posting is open is never stored; see derived.is_job_open.
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    short_description = Column(String(250), nullable=False)
    full_description = Column(Text, nullable=False)

    requirements = Column(JSON, default=list, nullable=False)
    responsibilities = Column(JSON, default=list, nullable=False)
    benefits = Column(JSON, default=list, nullable=False)
    tags = Column(JSON, default=list, nullable=False)

    experience = Column(Enum(ExperienceLevel, name="experiencelevel", values_callable=enum_values), nullable=False)
    department = Column(Enum(Department, name="department", values_callable=enum_values), nullable=False)
    employment_type = Column(Enum(EmploymentType, name="employmenttype", values_callable=enum_values), nullable=False)
    location = Column(String(100), default="Surat", nullable=False)

    salary = Column(JSON, nullable=True)

    is_remote = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    priority = Column(Integer, default=0, nullable=False)
    application_deadline = Column(DateTime(timezone=True), nullable=True)
    apply_link = Column(String, nullable=True)
    apply_email = Column(String, nullable=True)

    views = Column(Integer, default=0, nullable=False)
    applications = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_jobs_active_priority_created", "is_active", "priority", "created_at"),
        Index("ix_jobs_department_location_type", "department", "location", "employment_type"),
    )

    def __repr__(self):
        return f"<JobPosting(id={self.id}, slug='{self.slug}', active={self.is_active})>"
