"""
Billing Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PlanResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    price_monthly: float
    price_yearly: float
    max_users: int
    max_projects: int
    max_storage_gb: int
    features: dict
    display_order: int

    class Config:
        from_attributes = True


class Usage(BaseModel):
    users: int
    projects: int
    storage_gb: float


class SubscriptionResponse(BaseModel):
    id: Optional[str]
    status: str
    billing_cycle: str
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool
    canceled_at: Optional[datetime]
    plan: PlanResponse
    usage: Usage


class SubscriptionChange(BaseModel):
    plan_id: str
    billing_cycle: str = Field("monthly", pattern="^(monthly|yearly)$")


class BillingRecordResponse(BaseModel):
    id: str
    type: str
    status: str
    amount: float
    currency: str
    description: Optional[str]
    invoice_number: Optional[str]
    period_start: Optional[datetime]
    period_end: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
