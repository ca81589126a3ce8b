"""
User Schemas

Profiles, memberships and team listings.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from projectpro.models.user import TenantRole, MembershipStatus


class UserResponse(BaseModel):
    """User response schema (excludes sensitive data)."""
    id: str
    email: EmailStr
    full_name: Optional[str]
    phone: Optional[str]
    job_title: Optional[str]
    avatar_url: Optional[str]
    is_active: bool
    is_verified: bool
    created_at: datetime
    last_login_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    job_title: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=512)


class MembershipSummary(BaseModel):
    """One organization the user belongs to."""
    tenant_id: str
    tenant_name: str
    tenant_slug: str
    role: TenantRole
    status: MembershipStatus
    joined_at: datetime


class MeResponse(BaseModel):
    user: UserResponse
    current_tenant_id: str
    role: TenantRole
    memberships: list[MembershipSummary]


class TeamMemberResponse(BaseModel):
    user_id: str
    email: EmailStr
    full_name: Optional[str]
    job_title: Optional[str]
    role: TenantRole
    status: MembershipStatus
    joined_at: datetime
    last_login_at: Optional[datetime]


class TeamMemberUpdate(BaseModel):
    role: Optional[TenantRole] = None
    status: Optional[MembershipStatus] = None


class TeamListResponse(BaseModel):
    items: list[TeamMemberResponse]
    total: int
    page: int
    page_size: int
