"""
Contact Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from projectpro.models.contact import CONTACT_TYPES
from projectpro.schemas.project import choice_pattern, not_null

CONTACT_TYPE_PATTERN = choice_pattern(CONTACT_TYPES)


class ContactBase(BaseModel):
    contact_type: str = Field("vendor", pattern=CONTACT_TYPE_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    trade: Optional[str] = Field(None, max_length=100)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field("USA", max_length=100)
    notes: Optional[str] = None
    tags: list[str] = []
    is_active: bool = True


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    contact_type: Optional[str] = Field(None, pattern=CONTACT_TYPE_PATTERN)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    trade: Optional[str] = Field(None, max_length=100)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None

    @field_validator("contact_type", "name", "tags", "is_active")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class ContactResponse(ContactBase):
    id: str
    tenant_id: str
    email: Optional[str] = None
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ContactListResponse(BaseModel):
    items: list[ContactResponse]
    total: int
    page: int
    page_size: int
