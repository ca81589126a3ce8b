"""
Invitation Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class InvitationCreate(BaseModel):
    emails: list[EmailStr] = Field(..., min_length=1, max_length=50)
    role: str = Field("member", pattern="^(admin|manager|member|viewer)$")
    message: Optional[str] = Field(None, max_length=2000)


class InvitationResult(BaseModel):
    """Outcome for one email of a batch invitation."""
    email: str
    success: bool
    id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


class InvitationBatchResponse(BaseModel):
    results: list[InvitationResult]
    sent: int
    failed: int


class InvitationResponse(BaseModel):
    id: str
    email: str
    role: str
    message: Optional[str]
    status: str
    invited_by: Optional[str]
    expires_at: datetime
    created_at: datetime
    accepted_at: Optional[datetime]

    class Config:
        from_attributes = True


class InvitationLookupResponse(BaseModel):
    """What the invitee sees before accepting."""
    email: str
    role: str
    message: Optional[str]
    tenant_name: str
    tenant_slug: str
    expires_at: datetime
    user_exists: bool


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=100)
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
