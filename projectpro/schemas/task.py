"""
Task Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from projectpro.models.project import PRIORITIES
from projectpro.models.task import TASK_STATUSES, TASK_TYPES, DEPENDENCY_TYPES
from projectpro.schemas.project import choice_pattern, naive_utc, not_null

TASK_STATUS_PATTERN = choice_pattern(TASK_STATUSES)


class ChecklistItem(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)
    done: bool = False


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: str = Field("pending", pattern=TASK_STATUS_PATTERN)
    priority: str = Field("medium", pattern=choice_pattern(PRIORITIES))
    task_type: str = Field("task", pattern=choice_pattern(TASK_TYPES))
    assigned_to: Optional[str] = None
    parent_task_id: Optional[str] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    progress: int = Field(0, ge=0, le=100)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    tags: list[str] = []
    checklist: list[ChecklistItem] = []

    @field_validator("start_date", "due_date")
    @classmethod
    def utc_dates(cls, value):
        return naive_utc(value)


class TaskCreate(TaskBase):
    project_id: str


class TaskUpdate(BaseModel):
    """All fields optional. Set force=true to start a task despite unfinished predecessors."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(None, pattern=TASK_STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=choice_pattern(PRIORITIES))
    task_type: Optional[str] = Field(None, pattern=choice_pattern(TASK_TYPES))
    assigned_to: Optional[str] = None
    parent_task_id: Optional[str] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    tags: Optional[list[str]] = None
    checklist: Optional[list[ChecklistItem]] = None

    @field_validator("start_date", "due_date")
    @classmethod
    def utc_dates(cls, value):
        return naive_utc(value)

    @field_validator("title", "status", "priority", "task_type", "progress", "tags", "checklist")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class TaskMove(BaseModel):
    """Kanban drag and drop."""
    status: str = Field(..., pattern=TASK_STATUS_PATTERN)
    position: int = Field(..., ge=0)


class DependencyResponse(BaseModel):
    id: str
    task_id: str
    depends_on_task_id: str
    dependency_type: str
    lag_days: int
    created_at: datetime

    class Config:
        from_attributes = True


class DependencyCreate(BaseModel):
    depends_on_task_id: str
    dependency_type: str = Field("finish_to_start", pattern=choice_pattern(DEPENDENCY_TYPES))
    lag_days: int = Field(0, ge=0)


class ContactTag(BaseModel):
    id: str
    name: str
    company: Optional[str]
    contact_type: str

    class Config:
        from_attributes = True


class TaskResponse(TaskBase):
    id: str
    tenant_id: str
    project_id: str
    assigned_by: Optional[str]
    completed_at: Optional[datetime]
    position: int
    is_overdue: bool
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskDetailResponse(TaskResponse):
    dependencies: list[DependencyResponse] = []
    contacts: list[ContactTag] = []


class TaskListResponse(BaseModel):
    items: list[TaskResponse]
    total: int
    page: int
    page_size: int


class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=10000)
    attachments: list[dict] = []


class CommentResponse(BaseModel):
    id: str
    task_id: str
    user_id: Optional[str]
    comment: str
    attachments: list
    created_at: datetime

    class Config:
        from_attributes = True


class TaskContactsUpdate(BaseModel):
    contact_ids: list[str] = Field(..., max_length=100)
