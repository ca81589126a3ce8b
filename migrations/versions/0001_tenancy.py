"""Tenancy: tenants, users, memberships, invitations, activity log

Revision ID: 0001
Revises:
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

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "tenants",
        id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("subdomain", sa.String(63), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("industry", sa.String(100), nullable=True),
        sa.Column("company_size", sa.String(20), nullable=True),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("logo_url", sa.String(512), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("primary_contact_email", sa.String(255), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), server_default="USA", nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        json_column("settings", "{}"),
        sa.Column("project_code_format", sa.String(100), server_default="PRJ-{YEAR}-{NUMBER}", nullable=False),
        sa.Column("project_code_prefix", sa.String(20), server_default="PRJ", nullable=False),
        sa.Column("project_code_auto_generate", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("project_code_next_number", sa.Integer(), server_default="1", nullable=False),
        sa.Column("rate_limit_per_minute", sa.Integer(), nullable=True),
        sa.Column("rate_limit_burst", sa.Integer(), nullable=True),
        *timestamps(),
        sa.CheckConstraint(
            "company_size IS NULL OR company_size IN ('small', 'medium', 'large', 'enterprise')",
            name="ck_tenants_company_size",
        ),
        sa.CheckConstraint("project_code_next_number >= 1", name="ck_tenants_code_next_number"),
    )
    create_index_if_missing("ix_tenants_slug", "tenants", ["slug"], unique=True)
    create_index_if_missing("idx_tenant_active_subdomain", "tenants", ["is_active", "subdomain"])

    create_table_if_missing(
        "users",
        id_column(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("job_title", sa.String(100), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        *timestamps(),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    create_index_if_missing("ix_users_email", "users", ["email"], unique=True)

    create_table_if_missing(
        "user_tenants",
        id_column(),
        user_ref("user_id", ondelete="CASCADE", nullable=False, index=True),
        tenant_id_column(),
        sa.Column("role", sa.String(20), server_default="member", nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        user_ref("invited_by"),
        sa.Column("joined_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.UniqueConstraint("user_id", "tenant_id", name="uq_user_tenants_user_tenant"),
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'manager', 'member', 'viewer')", name="ck_user_tenants_role"
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'pending', 'suspended')", name="ck_user_tenants_status"
        ),
    )
    create_index_if_missing("idx_user_tenants_tenant_role", "user_tenants", ["tenant_id", "role"])

    create_table_if_missing(
        "tenant_invitations",
        id_column(),
        tenant_id_column(),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("role", sa.String(20), server_default="member", nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False, index=True),
        user_ref("invited_by"),
        user_ref("accepted_by"),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'manager', 'member', 'viewer')", name="ck_invitations_role"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'expired', 'cancelled')", name="ck_invitations_status"
        ),
    )
    create_index_if_missing("idx_invitations_tenant_email", "tenant_invitations", ["tenant_id", "email"])

    create_table_if_missing(
        "activity_logs",
        id_column(),
        tenant_id_column(),
        user_ref("user_id", index=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("entity_name", sa.String(255), nullable=True),
        json_column("details", "{}"),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False, index=True),
    )
    create_index_if_missing("idx_activity_entity", "activity_logs", ["entity_type", "entity_id"])
    create_index_if_missing("idx_activity_tenant_created", "activity_logs", ["tenant_id", "created_at"])


def downgrade():
    for table in ("activity_logs", "tenant_invitations", "user_tenants", "users", "tenants"):
        drop_table_if_exists(table)
