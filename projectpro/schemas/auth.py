"""
Authentication Schemas

Request/response models for authentication endpoints.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class Token(BaseModel):
    """JWT token response, bound to one tenant."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    tenant_id: str
    user_id: str
    role: str


class LoginRequest(BaseModel):
    """Login request body."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    # Login is scoped to one organization
    tenant_slug: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    """Create an organization and its owner account."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=255)
    organization_name: str = Field(..., min_length=2, max_length=255)
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, pattern="^(small|medium|large|enterprise)$")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "owner@acme-builders.com",
                "password": "securepassword123",
                "full_name": "Jane Doe",
                "organization_name": "Acme Builders"
            }
        }


class SwitchTenantRequest(BaseModel):
    tenant_id: str
