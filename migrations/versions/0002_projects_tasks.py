"""Projects, tasks, dependencies, comments and the contacts directory

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-05
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

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "projects",
        id_column(),
        tenant_id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("project_code", sa.String(50), nullable=True),
        sa.Column("code_auto_generated", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("status", sa.String(20), server_default="Planning", nullable=False, index=True),
        sa.Column("priority", sa.String(10), server_default="medium", nullable=False),
        sa.Column("budget", sa.Numeric(15, 2), nullable=True),
        sa.Column("spent", sa.Numeric(15, 2), server_default="0", nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("progress", sa.Integer(), server_default="0", nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("work_location", sa.String(255), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        json_column("tags"),
        user_ref("created_by", index=True),
        user_ref("project_manager_id", index=True),
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.false(), nullable=False, index=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint("tenant_id", "project_code", name="uq_projects_tenant_code"),
        sa.CheckConstraint(
            "status IN ('Not Started', 'Planning', 'In Progress', 'On Hold', 'Completed', 'Cancelled')",
            name="ck_projects_status",
        ),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high', 'critical')", name="ck_projects_priority"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress"),
        sa.CheckConstraint(
            "end_date IS NULL OR start_date IS NULL OR end_date >= start_date", name="ck_projects_dates"
        ),
    )
    create_index_if_missing("idx_project_tenant_status", "projects", ["tenant_id", "is_deleted", "status"])
    create_index_if_missing("idx_project_tenant_name", "projects", ["tenant_id", "name"])

    create_table_if_missing(
        "project_members",
        id_column(),
        tenant_id_column(),
        sa.Column(
            "project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        user_ref("user_id", ondelete="CASCADE", nullable=False, index=True),
        sa.Column("role", sa.String(20), server_default="member", nullable=False),
        sa.Column("joined_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        sa.CheckConstraint("role IN ('lead', 'manager', 'member', 'viewer')", name="ck_project_members_role"),
    )

    create_table_if_missing(
        "tasks",
        id_column(),
        tenant_id_column(),
        sa.Column(
            "project_id", sa.String(36), sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("parent_task_id", sa.String(36), sa.ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False, index=True),
        sa.Column("priority", sa.String(10), server_default="medium", nullable=False),
        sa.Column("task_type", sa.String(20), server_default="task", nullable=False),
        user_ref("assigned_to", index=True),
        user_ref("assigned_by"),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True, index=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("progress", sa.Integer(), server_default="0", nullable=False),
        sa.Column("estimated_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("actual_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        json_column("tags"),
        json_column("checklist"),
        user_ref("created_by"),
        *timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled', 'blocked')", name="ck_tasks_status"
        ),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high', 'critical')", name="ck_tasks_priority"),
        sa.CheckConstraint(
            "task_type IN ('task', 'milestone', 'deliverable', 'inspection', 'meeting')", name="ck_tasks_type"
        ),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_tasks_progress"),
    )
    create_index_if_missing("idx_tasks_tenant_status", "tasks", ["tenant_id", "status"])
    create_index_if_missing("idx_tasks_project_status_position", "tasks", ["project_id", "status", "position"])

    create_table_if_missing(
        "task_dependencies",
        id_column(),
        tenant_id_column(),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column(
            "depends_on_task_id", sa.String(36), sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("dependency_type", sa.String(20), server_default="finish_to_start", nullable=False),
        sa.Column("lag_days", sa.Integer(), server_default="0", nullable=False),
        user_ref("created_by"),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependencies_pair"),
        sa.CheckConstraint("task_id <> depends_on_task_id", name="ck_task_dependencies_not_self"),
        sa.CheckConstraint(
            "dependency_type IN ('finish_to_start', 'start_to_start', 'finish_to_finish', 'start_to_finish')",
            name="ck_task_dependencies_type",
        ),
        sa.CheckConstraint("lag_days >= 0", name="ck_task_dependencies_lag"),
    )

    create_table_if_missing(
        "task_comments",
        id_column(),
        tenant_id_column(),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True),
        user_ref("user_id"),
        sa.Column("comment", sa.Text(), nullable=False),
        json_column("attachments"),
        *timestamps(),
    )

    create_table_if_missing(
        "contacts",
        id_column(),
        tenant_id_column(),
        sa.Column("contact_type", sa.String(30), server_default="vendor", nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("mobile", sa.String(50), nullable=True),
        sa.Column("trade", sa.String(100), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), server_default="USA", nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        json_column("tags"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        user_ref("created_by"),
        *timestamps(),
        sa.UniqueConstraint("tenant_id", "email", name="uq_contacts_tenant_email"),
        sa.CheckConstraint(
            "contact_type IN ('vendor', 'contractor', 'subcontractor', 'design_professional', "
            "'consultant', 'customer', 'other')",
            name="ck_contacts_type",
        ),
    )
    create_index_if_missing("idx_contacts_tenant_type", "contacts", ["tenant_id", "contact_type"])
    create_index_if_missing("idx_contacts_tenant_name", "contacts", ["tenant_id", "name"])

    create_table_if_missing(
        "task_contacts",
        id_column(),
        tenant_id_column(),
        sa.Column("task_id", sa.String(36), sa.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column(
            "contact_id", sa.String(36), sa.ForeignKey("contacts.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.UniqueConstraint("task_id", "contact_id", name="uq_task_contacts_pair"),
    )


def downgrade():
    for table in (
        "task_contacts", "contacts", "task_comments", "task_dependencies", "tasks",
        "project_members", "projects",
    ):
        drop_table_if_exists(table)
