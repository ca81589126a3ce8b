"""
Messaging Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from projectpro.models.messaging import CONVERSATION_TYPES, MESSAGE_TYPES
from projectpro.schemas.project import choice_pattern, not_null


class ExternalParticipant(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)


class ConversationCreate(BaseModel):
    type: str = Field("direct", pattern=choice_pattern(CONVERSATION_TYPES))
    name: Optional[str] = Field(None, max_length=255)
    project_id: Optional[str] = None
    participant_ids: list[str] = []
    external_participants: list[ExternalParticipant] = []


class ParticipantResponse(BaseModel):
    id: str
    user_id: Optional[str]
    external_email: Optional[str]
    external_name: Optional[str]
    role: str
    unread_count: int
    last_read_at: Optional[datetime]
    left_at: Optional[datetime]
    is_active: bool

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: str
    tenant_id: str
    project_id: Optional[str]
    type: str
    name: Optional[str]
    last_message_at: Optional[datetime]
    last_message_preview: Optional[str]
    is_archived: bool
    created_by: Optional[str]
    created_at: datetime
    participants: list[ParticipantResponse] = []
    unread_count: int = 0

    class Config:
        from_attributes = True


class ConversationUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    is_archived: Optional[bool] = None

    @field_validator("is_archived")
    @classmethod
    def required_columns(cls, value):
        return not_null(value)


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    message_type: str = Field("text", pattern=choice_pattern(MESSAGE_TYPES))
    attachments: list[dict] = []
    reply_to_id: Optional[str] = None


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    sender_id: Optional[str]
    sender_email: Optional[str]
    content: str
    message_type: str
    attachments: list
    reply_to_id: Optional[str]
    edited_at: Optional[datetime]
    deleted_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
