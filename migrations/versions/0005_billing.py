"""Billing: plan catalogue, tenant subscriptions, billing history

Seeds the default plans (by name, so re-running adds only missing ones)
and subscribes every tenant without a subscription to Free.

Revision ID: 0005
Revises: 0004
Create Date: 2026-10-08
"""
from datetime import datetime
import uuid

from alembic import op
import sqlalchemy as sa

from projectpro.core.billing import DEFAULT_PLANS, FREE_PLAN, period_end
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

revision = "0005"
down_revision = "0004"
branch_labels = None
depends_on = None


def upgrade():
    create_table_if_missing(
        "subscription_plans",
        id_column(),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_monthly", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("price_yearly", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("max_users", sa.Integer(), server_default="-1", nullable=False),
        sa.Column("max_projects", sa.Integer(), server_default="-1", nullable=False),
        sa.Column("max_storage_gb", sa.Integer(), server_default="-1", nullable=False),
        json_column("features", "{}"),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *timestamps(),
        sa.CheckConstraint("price_monthly >= 0 AND price_yearly >= 0", name="ck_subscription_plans_prices"),
        sa.CheckConstraint(
            "max_users >= -1 AND max_projects >= -1 AND max_storage_gb >= -1",
            name="ck_subscription_plans_limits",
        ),
    )

    create_table_if_missing(
        "tenant_subscriptions",
        id_column(),
        sa.Column(
            "tenant_id", sa.String(36), sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("plan_id", sa.String(36), sa.ForeignKey("subscription_plans.id"), nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("billing_cycle", sa.String(20), server_default="monthly", nullable=False),
        sa.Column("current_period_start", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("current_period_end", sa.DateTime(), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("canceled_at", sa.DateTime(), nullable=True),
        sa.Column("external_subscription_id", sa.String(255), nullable=True),
        *timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'trialing', 'past_due', 'canceled')", name="ck_tenant_subscriptions_status"
        ),
        sa.CheckConstraint("billing_cycle IN ('monthly', 'yearly')", name="ck_tenant_subscriptions_cycle"),
    )

    create_table_if_missing(
        "billing_history",
        id_column(),
        tenant_id_column(),
        sa.Column(
            "subscription_id", sa.String(36), sa.ForeignKey("tenant_subscriptions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), server_default="paid", nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("invoice_number", sa.String(50), nullable=True, unique=True),
        sa.Column("period_start", sa.DateTime(), nullable=True),
        sa.Column("period_end", sa.DateTime(), nullable=True),
        user_ref("created_by"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.CheckConstraint(
            "type IN ('subscription', 'upgrade', 'downgrade', 'refund', 'credit')", name="ck_billing_history_type"
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'failed', 'refunded')", name="ck_billing_history_status"
        ),
    )
    create_index_if_missing("idx_billing_history_tenant_created", "billing_history", ["tenant_id", "created_at"])

    _seed_plans()
    _subscribe_existing_tenants()


def _seed_plans():
    plans = sa.table(
        "subscription_plans",
        sa.column("id", sa.String), sa.column("name", sa.String), sa.column("description", sa.Text),
        sa.column("price_monthly", sa.Numeric), sa.column("price_yearly", sa.Numeric),
        sa.column("max_users", sa.Integer), sa.column("max_projects", sa.Integer),
        sa.column("max_storage_gb", sa.Integer), sa.column("features", sa.JSON),
        sa.column("display_order", sa.Integer),
    )
    connection = op.get_bind()
    existing = {row[0] for row in connection.execute(sa.select(plans.c.name))}
    missing = [dict(plan, id=str(uuid.uuid4())) for plan in DEFAULT_PLANS if plan["name"] not in existing]
    if missing:
        op.bulk_insert(plans, missing)


def _subscribe_existing_tenants():
    connection = op.get_bind()
    free_plan_id = connection.execute(
        sa.text("SELECT id FROM subscription_plans WHERE name = :name"), {"name": FREE_PLAN}
    ).scalar()
    tenant_ids = [
        row[0] for row in connection.execute(sa.text(
            "SELECT t.id FROM tenants t WHERE NOT EXISTS "
            "(SELECT 1 FROM tenant_subscriptions s WHERE s.tenant_id = t.id)"
        ))
    ]
    if not tenant_ids:
        return

    now = datetime.utcnow()
    subscriptions = sa.table(
        "tenant_subscriptions",
        sa.column("id", sa.String), sa.column("tenant_id", sa.String), sa.column("plan_id", sa.String),
        sa.column("status", sa.String), sa.column("billing_cycle", sa.String),
        sa.column("current_period_start", sa.DateTime), sa.column("current_period_end", sa.DateTime),
    )
    op.bulk_insert(subscriptions, [
        {
            "id": str(uuid.uuid4()),
            "tenant_id": tenant_id,
            "plan_id": free_plan_id,
            "status": "active",
            "billing_cycle": "monthly",
            "current_period_start": now,
            "current_period_end": period_end(now, "monthly"),
        }
        for tenant_id in tenant_ids
    ])


def downgrade():
    for table in ("billing_history", "tenant_subscriptions", "subscription_plans"):
        drop_table_if_exists(table)
