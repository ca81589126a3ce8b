"""
Tenant Schemas

Organization profile and organization-level settings (project codes,
report template).
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from projectpro.schemas.project import not_null


class TenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    subdomain: Optional[str]
    is_active: bool
    industry: Optional[str]
    company_size: Optional[str]
    website: Optional[str]
    logo_url: Optional[str]
    phone: Optional[str]
    primary_contact_email: Optional[str]
    address_line1: Optional[str]
    address_line2: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    postal_code: Optional[str]
    settings: dict
    plan_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class TenantUpdate(BaseModel):
    """All fields optional."""
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    subdomain: Optional[str] = Field(None, pattern="^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, pattern="^(small|medium|large|enterprise)$")
    website: Optional[str] = Field(None, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=512)
    phone: Optional[str] = Field(None, max_length=50)
    primary_contact_email: Optional[str] = Field(None, max_length=255)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    settings: Optional[dict] = None

    @field_validator("name", "settings")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class TenantMembershipResponse(BaseModel):
    tenant_id: str
    name: str
    slug: str
    role: str
    is_current: bool


class ProjectCodeSettings(BaseModel):
    format: str
    prefix: str
    auto_generate: bool
    next_number: int
    example: str


class ProjectCodeSettingsUpdate(BaseModel):
    format: Optional[str] = Field(None, max_length=100)
    prefix: Optional[str] = Field(None, min_length=1, max_length=20)
    auto_generate: Optional[bool] = None
    next_number: Optional[int] = Field(None, ge=1)

    @field_validator("format", "prefix", "auto_generate", "next_number")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class ProjectCodePreviewRequest(BaseModel):
    format: str = Field(..., max_length=100)
    prefix: Optional[str] = Field(None, max_length=20)
    start: Optional[int] = Field(None, ge=1)
    count: int = Field(3, ge=1, le=10)


class ProjectCodePreviewResponse(BaseModel):
    codes: list[str]


class ReportTemplateBody(BaseModel):
    company_name: Optional[str] = Field(None, max_length=255)
    company_address: Optional[str] = None
    company_phone: Optional[str] = Field(None, max_length=50)
    company_email: Optional[str] = Field(None, max_length=255)
    company_website: Optional[str] = Field(None, max_length=255)
    report_header: Optional[str] = Field(None, max_length=255)
    report_subheader: Optional[str] = Field(None, max_length=255)
    default_attention_prefix: Optional[str] = Field(None, max_length=100)
    signature_title: Optional[str] = Field(None, max_length=255)
    signature_text: Optional[str] = None
    footer_text: Optional[str] = None
    include_company_logo: Optional[bool] = None
    include_page_numbers: Optional[bool] = None
    include_generation_date: Optional[bool] = None


class ReportTemplateResponse(ReportTemplateBody):
    id: Optional[str] = None
    is_default: bool = False
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
