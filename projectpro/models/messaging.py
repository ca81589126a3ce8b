"""
Messaging Models

Conversations between team members, and with external people
(clients, inspectors) who are addressed by email only.

Only participants may read or post in a conversation; this is checked
in the API layer on every request.
"""
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, Integer, JSON,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import _in_list
import uuid

CONVERSATION_TYPES = ("direct", "group", "external")
PARTICIPANT_ROLES = ("owner", "admin", "member")
MESSAGE_TYPES = ("text", "image", "file", "system")

PREVIEW_LENGTH = 100


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)

    type = Column(String(20), default="direct", nullable=False)
    name = Column(String(255), nullable=True)
    last_message_at = Column(DateTime, nullable=True, index=True)
    last_message_preview = Column(String(PREVIEW_LENGTH), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    participants = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
    )
    messages = relationship("Message", back_populates="conversation", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(_in_list("type", CONVERSATION_TYPES), name="ck_conversations_type"),
        Index('idx_conversations_tenant_last_message', 'tenant_id', 'last_message_at'),
    )

    def __repr__(self):
        return f"<Conversation {self.id} ({self.type})>"


class ConversationParticipant(Base):
    """A team member (user_id) or an external contact (external_email), never both."""

    __tablename__ = "conversation_participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    conversation_id = Column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    external_email = Column(String(255), nullable=True)
    external_name = Column(String(255), nullable=True)

    role = Column(String(20), default="member", nullable=False)
    last_read_at = Column(DateTime, nullable=True)
    unread_count = Column(Integer, default=0, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    left_at = Column(DateTime, nullable=True)

    conversation = relationship("Conversation", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NOT NULL AND external_email IS NULL) OR "
            "(user_id IS NULL AND external_email IS NOT NULL)",
            name="ck_conversation_participants_identity",
        ),
        CheckConstraint(_in_list("role", PARTICIPANT_ROLES), name="ck_conversation_participants_role"),
        CheckConstraint("unread_count >= 0", name="ck_conversation_participants_unread"),
        UniqueConstraint('conversation_id', 'user_id', name='uq_conversation_participants_user'),
        UniqueConstraint('conversation_id', 'external_email', name='uq_conversation_participants_email'),
    )

    @property
    def is_active(self) -> bool:
        return self.left_at is None


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    conversation_id = Column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sender_email = Column(String(255), nullable=True)

    content = Column(Text, nullable=False)
    message_type = Column(String(20), default="text", nullable=False)
    attachments = Column(JSON, nullable=False, default=list)
    reply_to_id = Column(String(36), ForeignKey("messages.id", ondelete="SET NULL"), nullable=True)

    edited_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        CheckConstraint(_in_list("message_type", MESSAGE_TYPES), name="ck_messages_type"),
        CheckConstraint(
            "sender_id IS NOT NULL OR sender_email IS NOT NULL",
            name="ck_messages_sender",
        ),
        Index('idx_messages_conversation_created', 'conversation_id', 'created_at'),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
