"""
Organization Endpoints

The current organization's profile, and the list of organizations the
caller can switch to.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from projectpro.database import get_db
from projectpro.models.user import TenantMembership, MembershipStatus
from projectpro.models.tenant import Tenant
from projectpro.schemas.tenant import TenantResponse, TenantUpdate, TenantMembershipResponse
from projectpro.api.deps import get_current_membership, get_current_tenant, require_admin
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("/current", response_model=TenantResponse)
async def get_current_organization(
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant)
):
    return tenant


@router.patch("/current", response_model=TenantResponse)
async def update_current_organization(
    tenant_data: TenantUpdate,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Update organization profile. Requires admin role."""
    update_data = tenant_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(tenant, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "tenant", tenant.id, tenant.name,
                 details={"fields": sorted(update_data)}, request=request)
    db.commit()
    db.refresh(tenant)

    logger.info(f"Tenant updated: {tenant.id} by {current.user_id}")

    return tenant


@router.get("/mine", response_model=list[TenantMembershipResponse])
async def list_my_organizations(
    current: TenantMembership = Depends(get_current_membership),
    db: Session = Depends(get_db)
):
    """Every active organization the caller belongs to."""
    rows = db.query(TenantMembership, Tenant).join(
        Tenant, Tenant.id == TenantMembership.tenant_id
    ).filter(
        TenantMembership.user_id == current.user_id,
        TenantMembership.status == MembershipStatus.ACTIVE,
        Tenant.is_active == True  # noqa: E712
    ).order_by(Tenant.name).all()

    return [
        TenantMembershipResponse(
            tenant_id=tenant.id,
            name=tenant.name,
            slug=tenant.slug,
            role=membership.role.value,
            is_current=tenant.id == current.tenant_id,
        )
        for membership, tenant in rows
    ]
