"""
Billing Endpoints

Plan catalogue, the tenant's subscription and its billing history.

Payments are collected by an external processor; changing plan here
records the change and starts a new billing period.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from datetime import datetime
import uuid

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.tenant import Tenant
from projectpro.models.billing import SubscriptionPlan, BillingRecord
from projectpro.schemas.billing import (
    PlanResponse,
    SubscriptionResponse,
    SubscriptionChange,
    BillingRecordResponse,
    Usage,
)
from projectpro.api.deps import get_current_tenant, require_admin, require_owner
from projectpro.core.billing import (
    get_subscription,
    get_plan,
    get_usage,
    is_live,
    period_end,
    subscribe,
    usage_exceeding,
)
from projectpro.core.exceptions import NotFoundError, InvalidInputError, ConflictError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


def invoice_number(now: datetime) -> str:
    return f"INV-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def plan_price(plan: SubscriptionPlan, billing_cycle: str) -> float:
    return plan.price_yearly if billing_cycle == "yearly" else plan.price_monthly


def subscription_response(db: Session, tenant_id: str) -> SubscriptionResponse:
    subscription = get_subscription(db, tenant_id)
    plan = get_plan(db, tenant_id)
    usage = Usage(**get_usage(db, tenant_id))

    if not is_live(subscription):
        # Tenants without a live subscription run on the Free plan
        return SubscriptionResponse(
            id=subscription.id if subscription else None,
            status="canceled" if subscription else "active",
            billing_cycle=subscription.billing_cycle if subscription else "monthly",
            current_period_start=subscription.current_period_start if subscription else None,
            current_period_end=subscription.current_period_end if subscription else None,
            cancel_at_period_end=False,
            canceled_at=subscription.canceled_at if subscription else None,
            plan=PlanResponse.model_validate(plan),
            usage=usage,
        )

    return SubscriptionResponse(
        id=subscription.id,
        status=subscription.status,
        billing_cycle=subscription.billing_cycle,
        current_period_start=subscription.current_period_start,
        current_period_end=subscription.current_period_end,
        cancel_at_period_end=subscription.cancel_at_period_end,
        canceled_at=subscription.canceled_at,
        plan=PlanResponse.model_validate(plan),
        usage=usage,
    )


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(db: Session = Depends(get_db)):
    """Public plan catalogue for the pricing page."""
    return db.query(SubscriptionPlan).filter(
        SubscriptionPlan.is_active == True  # noqa: E712
    ).order_by(SubscriptionPlan.display_order).all()


@router.get("/subscription", response_model=SubscriptionResponse)
async def get_current_subscription(
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Current plan with live usage (active users, live projects, document storage)."""
    return subscription_response(db, tenant.id)


@router.post("/subscription", response_model=SubscriptionResponse)
async def change_subscription(
    change: SubscriptionChange,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Move the tenant to another plan.

    Rejected (409) when current usage does not fit the new plan, so a
    downgrade never leaves the tenant over its limits.
    """
    plan = db.query(SubscriptionPlan).filter(
        SubscriptionPlan.id == change.plan_id,
        SubscriptionPlan.is_active == True  # noqa: E712
    ).first()
    if not plan:
        raise NotFoundError("Plan", change.plan_id)

    subscription = get_subscription(db, tenant.id)
    current_plan = get_plan(db, tenant.id)

    if (is_live(subscription) and subscription.plan_id == plan.id
            and subscription.billing_cycle == change.billing_cycle
            and not subscription.cancel_at_period_end):
        raise InvalidInputError(f"Already subscribed to {plan.name} ({change.billing_cycle})")

    over = usage_exceeding(plan, get_usage(db, tenant.id))
    if over:
        raise ConflictError(
            f"Current usage exceeds the {plan.name} plan limits: {', '.join(over)}"
        )

    is_upgrade = current_plan is None or plan.price_monthly >= current_plan.price_monthly
    now = datetime.utcnow()

    if subscription is None:
        subscription = subscribe(db, tenant.id, plan, change.billing_cycle)
        db.flush()
    else:
        subscription.plan_id = plan.id
        subscription.plan = plan
        subscription.status = "active"
        subscription.billing_cycle = change.billing_cycle
        subscription.current_period_start = now
        subscription.current_period_end = period_end(now, change.billing_cycle)
        subscription.cancel_at_period_end = False
        subscription.canceled_at = None

    record = BillingRecord(
        tenant_id=tenant.id,
        subscription_id=subscription.id,
        type="upgrade" if is_upgrade else "downgrade",
        status="paid",
        amount=plan_price(plan, change.billing_cycle),
        description=f"{plan.name} plan ({change.billing_cycle})",
        invoice_number=invoice_number(now),
        period_start=subscription.current_period_start,
        period_end=subscription.current_period_end,
        created_by=current.user_id,
    )
    db.add(record)
    log_activity(db, tenant.id, current.user_id, "changed_plan", "subscription", subscription.id, plan.name,
                 details={"from": current_plan.name if current_plan else None, "to": plan.name,
                          "billing_cycle": change.billing_cycle}, request=request)
    db.commit()

    logger.info(
        f"Tenant {tenant.id} moved from {current_plan.name if current_plan else 'none'} "
        f"to {plan.name} ({change.billing_cycle}) by {current.user_id}"
    )

    return subscription_response(db, tenant.id)


@router.post("/subscription/cancel", response_model=SubscriptionResponse)
async def cancel_subscription(
    request: Request,
    at_period_end: bool = True,
    current: TenantMembership = Depends(require_owner),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Cancel the paid subscription (owner only).

    By default the plan stays in effect until the end of the current
    period; with at_period_end=false the tenant drops to Free at once.
    """
    subscription = get_subscription(db, tenant.id)
    if not is_live(subscription):
        raise InvalidInputError("No active subscription to cancel")

    now = datetime.utcnow()
    subscription.canceled_at = now
    if at_period_end:
        subscription.cancel_at_period_end = True
    else:
        subscription.status = "canceled"
        subscription.current_period_end = now

    log_activity(db, tenant.id, current.user_id, "canceled", "subscription", subscription.id,
                 subscription.plan.name, details={"at_period_end": at_period_end}, request=request)
    db.commit()

    logger.info(f"Subscription canceled: tenant {tenant.id} by {current.user_id} (at_period_end={at_period_end})")

    return subscription_response(db, tenant.id)


@router.get("/history", response_model=list[BillingRecordResponse])
async def billing_history(
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return db.query(BillingRecord).filter(
        BillingRecord.tenant_id == tenant.id  # CRITICAL: Tenant isolation
    ).order_by(BillingRecord.created_at.desc()).all()
