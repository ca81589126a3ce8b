"""
Plan Catalogue and Limits

The default catalogue is seeded by the 0005 migration, by the
`projectpro seed-plans` command and lazily on first signup, so a fresh
database always has a Free plan to subscribe new tenants to.
"""
from datetime import datetime, timedelta
from typing import Dict, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from projectpro.core.exceptions import PlanLimitExceeded
from projectpro.models.billing import SubscriptionPlan, TenantSubscription, UNLIMITED
from projectpro.models.document import Document
from projectpro.models.invitation import TenantInvitation
from projectpro.models.project import Project
from projectpro.models.user import TenantMembership, MembershipStatus
import logging

logger = logging.getLogger(__name__)

FREE_PLAN = "Free"

_FEATURE_KEYS = (
    "api_access", "advanced_reports", "custom_branding", "priority_support", "data_export",
    "integrations", "ai_features", "unlimited_storage", "dedicated_support", "sso",
    "audit_logs", "custom_roles",
)


def _features(*enabled) -> Dict[str, bool]:
    return {key: key in enabled for key in _FEATURE_KEYS}


DEFAULT_PLANS = [
    {
        "name": "Free",
        "description": "Perfect for individuals and small teams just getting started",
        "price_monthly": 0, "price_yearly": 0,
        "max_users": 3, "max_projects": 5, "max_storage_gb": 5,
        "features": _features("data_export"),
        "display_order": 1,
    },
    {
        "name": "Pro",
        "description": "For growing teams that need more power and flexibility",
        "price_monthly": 29, "price_yearly": 290,
        "max_users": 10, "max_projects": 20, "max_storage_gb": 50,
        "features": _features(
            "api_access", "advanced_reports", "priority_support", "data_export",
            "integrations", "ai_features", "audit_logs",
        ),
        "display_order": 2,
    },
    {
        "name": "Business",
        "description": "For teams that need advanced features and priority support",
        "price_monthly": 59, "price_yearly": 590,
        "max_users": 25, "max_projects": 50, "max_storage_gb": 200,
        "features": _features(*[k for k in _FEATURE_KEYS if k != "unlimited_storage"]),
        "display_order": 3,
    },
    {
        "name": "Enterprise",
        "description": "For large organizations with custom needs",
        "price_monthly": 199, "price_yearly": 1990,
        "max_users": UNLIMITED, "max_projects": UNLIMITED, "max_storage_gb": 1000,
        "features": _features(*_FEATURE_KEYS),
        "display_order": 4,
    },
]


def ensure_default_plans(db: Session) -> int:
    """Insert catalogue plans missing by name. Returns how many were added."""
    existing = {name for (name,) in db.query(SubscriptionPlan.name).all()}
    added = 0
    for plan in DEFAULT_PLANS:
        if plan["name"] not in existing:
            db.add(SubscriptionPlan(**plan))
            added += 1
    if added:
        db.flush()
        logger.info(f"Seeded {added} subscription plans")
    return added


def period_end(start: datetime, billing_cycle: str) -> datetime:
    return start + timedelta(days=365 if billing_cycle == "yearly" else 30)


def subscribe(db: Session, tenant_id: str, plan: SubscriptionPlan,
              billing_cycle: str = "monthly") -> TenantSubscription:
    now = datetime.utcnow()
    subscription = TenantSubscription(
        tenant_id=tenant_id,
        plan_id=plan.id,
        status="active",
        billing_cycle=billing_cycle,
        current_period_start=now,
        current_period_end=period_end(now, billing_cycle),
    )
    db.add(subscription)
    return subscription


def get_subscription(db: Session, tenant_id: str) -> Optional[TenantSubscription]:
    return db.query(TenantSubscription).filter(TenantSubscription.tenant_id == tenant_id).first()


def is_live(subscription: Optional[TenantSubscription], now: Optional[datetime] = None) -> bool:
    """False once a subscription is canceled, or its scheduled cancellation has passed."""
    if subscription is None or subscription.status == "canceled":
        return False
    if subscription.cancel_at_period_end and subscription.current_period_end:
        return subscription.current_period_end > (now or datetime.utcnow())
    return True


def get_plan(db: Session, tenant_id: str) -> Optional[SubscriptionPlan]:
    """The tenant's plan, or the Free plan when it has no live subscription."""
    subscription = get_subscription(db, tenant_id)
    if is_live(subscription):
        return subscription.plan
    return db.query(SubscriptionPlan).filter(SubscriptionPlan.name == FREE_PLAN).first()


def get_usage(db: Session, tenant_id: str) -> Dict[str, float]:
    users = db.query(func.count(TenantMembership.id)).filter(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.status == MembershipStatus.ACTIVE,
    ).scalar()
    projects = db.query(func.count(Project.id)).filter(
        Project.tenant_id == tenant_id,
        Project.is_deleted == False,  # noqa: E712
    ).scalar()
    storage_bytes = db.query(func.coalesce(func.sum(Document.file_size), 0)).filter(
        Document.tenant_id == tenant_id
    ).scalar()
    return {
        "users": users or 0,
        "projects": projects or 0,
        "storage_gb": round((storage_bytes or 0) / (1024 ** 3), 3),
    }


def check_project_limit(db: Session, tenant_id: str) -> None:
    """Raise PlanLimitExceeded if one more project would not fit the plan."""
    plan = get_plan(db, tenant_id)
    if plan is None:
        return
    usage = get_usage(db, tenant_id)
    if not plan.allows("max_projects", usage["projects"] + 1):
        raise PlanLimitExceeded("projects", plan.max_projects)


def check_seat_limit(db: Session, tenant_id: str, additional: int = 1) -> None:
    """Seats count active members plus pending invitations that have not expired."""
    plan = get_plan(db, tenant_id)
    if plan is None:
        return
    usage = get_usage(db, tenant_id)
    pending = db.query(func.count(TenantInvitation.id)).filter(
        TenantInvitation.tenant_id == tenant_id,
        TenantInvitation.status == "pending",
        TenantInvitation.expires_at > datetime.utcnow(),
    ).scalar() or 0
    if not plan.allows("max_users", usage["users"] + pending + additional):
        raise PlanLimitExceeded("users", plan.max_users)


def usage_exceeding(plan: SubscriptionPlan, usage: Dict[str, float]) -> list:
    """Names of the limits current usage would break on `plan`."""
    over = []
    if not plan.allows("max_users", usage["users"]):
        over.append("users")
    if not plan.allows("max_projects", usage["projects"]):
        over.append("projects")
    if not plan.allows("max_storage_gb", usage["storage_gb"]):
        over.append("storage_gb")
    return over
