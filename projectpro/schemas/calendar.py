"""
Calendar Schemas
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from projectpro.models.calendar import EVENT_TYPES
from projectpro.schemas.project import choice_pattern, naive_utc, not_null

EVENT_TYPE_PATTERN = choice_pattern(EVENT_TYPES)


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    all_day: bool = False
    location: Optional[str] = Field(None, max_length=255)
    event_type: str = Field("meeting", pattern=EVENT_TYPE_PATTERN)
    color: Optional[str] = Field(None, max_length=20)
    reminder_minutes: Optional[int] = Field(None, ge=0)
    recurrence_rule: Optional[str] = Field(None, max_length=255)
    attendees: list[str] = []
    project_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def utc_times(cls, value):
        return naive_utc(value)


class EventCreate(EventBase):
    @model_validator(mode="after")
    def check_times(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must be on or after start_time")
        return self


class EventUpdate(BaseModel):
    """All fields optional."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=255)
    event_type: Optional[str] = Field(None, pattern=EVENT_TYPE_PATTERN)
    color: Optional[str] = Field(None, max_length=20)
    reminder_minutes: Optional[int] = Field(None, ge=0)
    recurrence_rule: Optional[str] = Field(None, max_length=255)
    attendees: Optional[list[str]] = None
    project_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def utc_times(cls, value):
        return naive_utc(value)

    @field_validator("title", "start_time", "end_time", "all_day", "event_type", "attendees")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class EventResponse(EventBase):
    id: str
    tenant_id: str
    created_by: Optional[str]
    updated_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
