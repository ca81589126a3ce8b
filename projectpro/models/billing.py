"""
Billing Models

Plans are a global catalogue; each tenant has exactly one subscription
and a history of billing records. Payment collection happens in an
external processor, so these rows only mirror what was charged.

Plan limits use -1 for "unlimited".
"""
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, Integer, Numeric, JSON,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import _in_list
import uuid

UNLIMITED = -1

SUBSCRIPTION_STATUSES = ("active", "trialing", "past_due", "canceled")
BILLING_CYCLES = ("monthly", "yearly")
BILLING_RECORD_TYPES = ("subscription", "upgrade", "downgrade", "refund", "credit")
BILLING_RECORD_STATUSES = ("pending", "paid", "failed", "refunded")


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    price_monthly = Column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    price_yearly = Column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)

    max_users = Column(Integer, default=UNLIMITED, nullable=False)
    max_projects = Column(Integer, default=UNLIMITED, nullable=False)
    max_storage_gb = Column(Integer, default=UNLIMITED, nullable=False)
    features = Column(JSON, nullable=False, default=dict)

    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("price_monthly >= 0 AND price_yearly >= 0", name="ck_subscription_plans_prices"),
        CheckConstraint(
            "max_users >= -1 AND max_projects >= -1 AND max_storage_gb >= -1",
            name="ck_subscription_plans_limits",
        ),
    )

    def __repr__(self):
        return f"<SubscriptionPlan {self.name}>"

    def allows(self, limit_name: str, count: int) -> bool:
        """True if `count` items fit within the plan's `limit_name`."""
        limit = getattr(self, limit_name)
        return limit == UNLIMITED or count <= limit


class TenantSubscription(Base):
    __tablename__ = "tenant_subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    plan_id = Column(String(36), ForeignKey("subscription_plans.id"), nullable=False)

    status = Column(String(20), default="active", nullable=False)
    billing_cycle = Column(String(20), default="monthly", nullable=False)
    current_period_start = Column(DateTime, default=datetime.utcnow, nullable=False)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    canceled_at = Column(DateTime, nullable=True)

    # Reference into the payment processor
    external_subscription_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="subscription")
    plan = relationship("SubscriptionPlan")

    __table_args__ = (
        CheckConstraint(_in_list("status", SUBSCRIPTION_STATUSES), name="ck_tenant_subscriptions_status"),
        CheckConstraint(_in_list("billing_cycle", BILLING_CYCLES), name="ck_tenant_subscriptions_cycle"),
    )


class BillingRecord(Base):
    __tablename__ = "billing_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    subscription_id = Column(String(36), ForeignKey("tenant_subscriptions.id", ondelete="SET NULL"), nullable=True)

    type = Column(String(20), nullable=False)
    status = Column(String(20), default="paid", nullable=False)
    amount = Column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    description = Column(Text, nullable=True)
    invoice_number = Column(String(50), nullable=True, unique=True)
    period_start = Column(DateTime, nullable=True)
    period_end = Column(DateTime, nullable=True)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("type", BILLING_RECORD_TYPES), name="ck_billing_history_type"),
        CheckConstraint(_in_list("status", BILLING_RECORD_STATUSES), name="ck_billing_history_status"),
        Index('idx_billing_history_tenant_created', 'tenant_id', 'created_at'),
    )
