"""
Update Log Schemas (daily site reports)
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Any
from datetime import date as date_type, datetime
from projectpro.schemas.project import not_null


class UpdateLogBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[date_type] = None
    weather: dict[str, Any] = {}
    tasks_completed: list[Any] = []
    issues: list[Any] = []
    photos: list[str] = []


class UpdateLogCreate(UpdateLogBase):
    project_id: str


class UpdateLogUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[date_type] = None
    weather: Optional[dict[str, Any]] = None
    tasks_completed: Optional[list[Any]] = None
    issues: Optional[list[Any]] = None
    photos: Optional[list[str]] = None

    @field_validator("title", "date", "weather", "tasks_completed", "issues", "photos")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class UpdateLogResponse(UpdateLogBase):
    id: str
    tenant_id: str
    project_id: str
    created_by: Optional[str]
    created_by_name: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UpdateLogListResponse(BaseModel):
    items: list[UpdateLogResponse]
    total: int
    page: int
    page_size: int
