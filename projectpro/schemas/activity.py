"""
Activity Log Schemas
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityResponse(BaseModel):
    id: str
    user_id: Optional[str]
    action: str
    entity_type: str
    entity_id: str
    entity_name: Optional[str]
    details: dict
    ip_address: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityListResponse(BaseModel):
    items: list[ActivityResponse]
    total: int
    page: int
    page_size: int
