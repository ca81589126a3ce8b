"""Messaging: conversations, participants, messages

Revision ID: 0004
Revises: 0003
Create Date: 2026-10-07
"""
from alembic import op
import sqlalchemy as sa

from projectpro.db.schema import (
    NOW,
    create_index_if_missing,
    create_table_if_missing,
    drop_table_if_exists,
    id_column,
    json_column,
    tenant_id_column,
    timestamps,
    user_ref,
)

revision = "0004"
down_revision = "0003"
branch_labels = None
depends_on = None


def _conversation_ref() -> sa.Column:
    return sa.Column(
        "conversation_id", sa.String(36), sa.ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


def upgrade():
    create_table_if_missing(
        "conversations",
        id_column(),
        tenant_id_column(),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.String(20), server_default="direct", nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("last_message_at", sa.DateTime(), nullable=True, index=True),
        sa.Column("last_message_preview", sa.String(100), nullable=True),
        sa.Column("is_archived", sa.Boolean(), server_default=sa.false(), nullable=False),
        user_ref("created_by"),
        *timestamps(),
        sa.CheckConstraint("type IN ('direct', 'group', 'external')", name="ck_conversations_type"),
    )
    create_index_if_missing(
        "idx_conversations_tenant_last_message", "conversations", ["tenant_id", "last_message_at"]
    )

    create_table_if_missing(
        "conversation_participants",
        id_column(),
        tenant_id_column(),
        _conversation_ref(),
        user_ref("user_id", ondelete="CASCADE", index=True),
        sa.Column("external_email", sa.String(255), nullable=True),
        sa.Column("external_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), server_default="member", nullable=False),
        sa.Column("last_read_at", sa.DateTime(), nullable=True),
        sa.Column("unread_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("joined_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "(user_id IS NOT NULL AND external_email IS NULL) OR "
            "(user_id IS NULL AND external_email IS NOT NULL)",
            name="ck_conversation_participants_identity",
        ),
        sa.CheckConstraint("role IN ('owner', 'admin', 'member')", name="ck_conversation_participants_role"),
        sa.CheckConstraint("unread_count >= 0", name="ck_conversation_participants_unread"),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participants_user"),
        sa.UniqueConstraint("conversation_id", "external_email", name="uq_conversation_participants_email"),
    )

    create_table_if_missing(
        "messages",
        id_column(),
        tenant_id_column(),
        _conversation_ref(),
        user_ref("sender_id"),
        sa.Column("sender_email", sa.String(255), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(20), server_default="text", nullable=False),
        json_column("attachments"),
        sa.Column("reply_to_id", sa.String(36), sa.ForeignKey("messages.id", ondelete="SET NULL"), nullable=True),
        sa.Column("edited_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.CheckConstraint("message_type IN ('text', 'image', 'file', 'system')", name="ck_messages_type"),
        sa.CheckConstraint("sender_id IS NOT NULL OR sender_email IS NOT NULL", name="ck_messages_sender"),
    )
    create_index_if_missing("idx_messages_conversation_created", "messages", ["conversation_id", "created_at"])


def downgrade():
    for table in ("messages", "conversation_participants", "conversations"):
        drop_table_if_exists(table)
