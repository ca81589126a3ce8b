"""
Dashboard and Search Schemas
"""
from pydantic import BaseModel
from typing import Optional
from datetime import date as date_type, datetime


class UpcomingEvent(BaseModel):
    id: str
    title: str
    event_type: str
    start_time: datetime
    project_id: Optional[str]

    class Config:
        from_attributes = True


class RecentUpdate(BaseModel):
    id: str
    project_id: str
    title: str
    date: date_type

    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    projects_by_status: dict[str, int]
    total_projects: int
    open_tasks: int
    overdue_tasks: int
    my_open_tasks: int
    upcoming_events: list[UpcomingEvent]
    recent_updates: list[RecentUpdate]
    unread_messages: int


class SearchHit(BaseModel):
    id: str
    kind: str
    title: str
    subtitle: Optional[str] = None
    project_id: Optional[str] = None


class SearchResponse(BaseModel):
    query: str
    projects: list[SearchHit]
    tasks: list[SearchHit]
    documents: list[SearchHit]
    contacts: list[SearchHit]
