"""
Document Schemas

Request/response models for document operations.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime
from projectpro.models.document import DOCUMENT_CATEGORIES
from projectpro.schemas.project import choice_pattern, not_null

CATEGORY_PATTERN = choice_pattern(DOCUMENT_CATEGORIES)


class DocumentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field("other", pattern=CATEGORY_PATTERN)
    description: Optional[str] = None
    project_id: Optional[str] = None
    content: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=512)
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = Field(None, max_length=100)
    document_metadata: Dict[str, Any] = {}


class DocumentCreate(DocumentBase):
    pass


class DocumentUpdate(BaseModel):
    """Any change bumps the version."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, pattern=CATEGORY_PATTERN)
    description: Optional[str] = None
    project_id: Optional[str] = None
    content: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=512)
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = Field(None, max_length=100)
    document_metadata: Optional[Dict[str, Any]] = None

    @field_validator("name", "category", "document_metadata")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class DocumentResponse(DocumentBase):
    id: str
    tenant_id: str
    version: int
    file_size_mb: float
    uploaded_by: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total: int
    page: int
    page_size: int
