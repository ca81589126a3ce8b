"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime, timezone
from projectpro.models.project import PROJECT_STATUSES, PRIORITIES, PROJECT_MEMBER_ROLES


def choice_pattern(values) -> str:
    return "^(" + "|".join(values) + ")$"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; aware input is converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def not_null(value):
    """PATCH bodies may omit a field, but not null out a NOT NULL column."""
    if value is None:
        raise ValueError("may not be null")
    return value


STATUS_PATTERN = choice_pattern(PROJECT_STATUSES)
PRIORITY_PATTERN = choice_pattern(PRIORITIES)


def _check_date_range(model):
    if model.start_date and model.end_date and model.end_date < model.start_date:
        raise ValueError("end_date must be on or after start_date")
    return model


class ProjectBase(BaseModel):
    """Base project schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: str = Field("Planning", pattern=STATUS_PATTERN)
    priority: str = Field("medium", pattern=PRIORITY_PATTERN)
    budget: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    work_location: Optional[str] = Field(None, max_length=255)
    client_name: Optional[str] = Field(None, max_length=255)
    project_manager_id: Optional[str] = None
    tags: list[str] = []


class ProjectCreate(ProjectBase):
    """Leave project_code empty to have one generated."""
    project_code: Optional[str] = Field(None, min_length=1, max_length=50)

    @model_validator(mode="after")
    def check_dates(self):
        return _check_date_range(self)


class ProjectUpdate(BaseModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_code: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=PRIORITY_PATTERN)
    budget: Optional[float] = Field(None, ge=0)
    spent: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    work_location: Optional[str] = Field(None, max_length=255)
    client_name: Optional[str] = Field(None, max_length=255)
    project_manager_id: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("name", "status", "priority", "spent", "progress", "tags")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)

    @model_validator(mode="after")
    def check_dates(self):
        return _check_date_range(self)


class ProjectResponse(ProjectBase):
    """Project response schema."""
    id: str
    tenant_id: str
    project_code: Optional[str]
    code_auto_generated: bool
    spent: float
    budget_remaining: Optional[float]
    progress: int
    actual_end_date: Optional[date]
    created_by: Optional[str]
    is_deleted: bool
    deleted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    """Paginated list of projects."""
    items: list[ProjectResponse]
    total: int
    page: int
    page_size: int


class ProjectSummary(BaseModel):
    project_id: str
    task_counts: dict[str, int]
    total_tasks: int
    overdue_tasks: int
    budget: Optional[float]
    spent: float
    budget_remaining: Optional[float]
    document_count: int
    team_size: int


class ProjectMemberCreate(BaseModel):
    user_id: str
    role: str = Field("member", pattern=choice_pattern(PROJECT_MEMBER_ROLES))


class ProjectMemberResponse(BaseModel):
    id: str
    project_id: str
    user_id: str
    role: str
    joined_at: datetime
    email: Optional[str] = None
    full_name: Optional[str] = None

    class Config:
        from_attributes = True
