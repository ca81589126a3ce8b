"""Documents, calendar events, daily update logs and report templates

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-06
"""
from alembic import op
import sqlalchemy as sa

from projectpro.db.schema import (
    create_index_if_missing,
    create_table_if_missing,
    drop_table_if_exists,
    id_column,
    json_column,
    tenant_id_column,
    timestamps,
    user_ref,
)
from projectpro.models.report_template import TEMPLATE_DEFAULTS

revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def _project_ref(nullable: bool) -> sa.Column:
    return sa.Column(
        "project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=nullable, index=True,
    )


def upgrade():
    create_table_if_missing(
        "documents",
        id_column(),
        tenant_id_column(),
        _project_ref(nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(30), server_default="other", nullable=False, index=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(512), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(100), nullable=True),
        json_column("document_metadata", "{}"),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        user_ref("uploaded_by"),
        *timestamps(),
        sa.CheckConstraint(
            "category IN ('drawing', 'contract', 'permit', 'invoice', 'photo', 'report', "
            "'specification', 'other')",
            name="ck_documents_category",
        ),
        sa.CheckConstraint("file_size IS NULL OR file_size >= 0", name="ck_documents_file_size"),
    )
    create_index_if_missing("idx_documents_project_created", "documents", ["project_id", "created_at"])
    create_index_if_missing("idx_documents_tenant_category", "documents", ["tenant_id", "category"])

    create_table_if_missing(
        "calendar_events",
        id_column(),
        tenant_id_column(),
        _project_ref(nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=False, index=True),
        sa.Column("end_time", sa.DateTime(), nullable=False, index=True),
        sa.Column("all_day", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("event_type", sa.String(20), server_default="meeting", nullable=False),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("reminder_minutes", sa.Integer(), nullable=True),
        sa.Column("recurrence_rule", sa.String(255), nullable=True),
        json_column("attendees"),
        user_ref("created_by"),
        user_ref("updated_by"),
        *timestamps(),
        sa.CheckConstraint("end_time >= start_time", name="ck_calendar_events_time_range"),
        sa.CheckConstraint(
            "event_type IN ('meeting', 'inspection', 'delivery', 'deadline', 'milestone', "
            "'site_visit', 'other')",
            name="ck_calendar_events_type",
        ),
        sa.CheckConstraint(
            "reminder_minutes IS NULL OR reminder_minutes >= 0", name="ck_calendar_events_reminder"
        ),
    )
    create_index_if_missing("idx_calendar_events_tenant_start", "calendar_events", ["tenant_id", "start_time"])

    create_table_if_missing(
        "update_logs",
        id_column(),
        tenant_id_column(),
        _project_ref(nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), server_default=sa.text("CURRENT_DATE"), nullable=False, index=True),
        json_column("weather", "{}"),
        json_column("tasks_completed"),
        json_column("issues"),
        json_column("photos"),
        user_ref("created_by", index=True),
        sa.Column("created_by_name", sa.String(255), nullable=True),
        *timestamps(),
    )
    create_index_if_missing("idx_update_logs_project_date", "update_logs", ["project_id", "date"])

    create_table_if_missing(
        "report_templates",
        id_column(),
        sa.Column(
            "tenant_id", sa.String(36), sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("company_phone", sa.String(50), nullable=True),
        sa.Column("company_email", sa.String(255), nullable=True),
        sa.Column("company_website", sa.String(255), nullable=True),
        sa.Column("report_header", sa.String(255), server_default=TEMPLATE_DEFAULTS["report_header"], nullable=False),
        sa.Column(
            "report_subheader", sa.String(255), server_default=TEMPLATE_DEFAULTS["report_subheader"], nullable=False
        ),
        sa.Column(
            "default_attention_prefix", sa.String(100),
            server_default=TEMPLATE_DEFAULTS["default_attention_prefix"], nullable=False,
        ),
        sa.Column(
            "signature_title", sa.String(255), server_default=TEMPLATE_DEFAULTS["signature_title"], nullable=False
        ),
        sa.Column("signature_text", sa.Text(), server_default=TEMPLATE_DEFAULTS["signature_text"], nullable=False),
        sa.Column("footer_text", sa.Text(), server_default=TEMPLATE_DEFAULTS["footer_text"], nullable=False),
        sa.Column("include_company_logo", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("include_page_numbers", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("include_generation_date", sa.Boolean(), server_default=sa.true(), nullable=False),
        user_ref("created_by"),
        *timestamps(),
    )


def downgrade():
    for table in ("report_templates", "update_logs", "calendar_events", "documents"):
        drop_table_if_exists(table)
