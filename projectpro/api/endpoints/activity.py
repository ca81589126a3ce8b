"""
Activity Endpoints

Read access to the tenant audit trail (admin+).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.tenant import Tenant
from projectpro.models.activity import ActivityLog
from projectpro.schemas.activity import ActivityListResponse
from projectpro.api.deps import get_current_tenant, require_admin, Pagination, get_pagination

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("", response_model=ActivityListResponse)
async def list_activity(
    entity_type: Optional[str] = Query(None, max_length=50),
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    action: Optional[str] = Query(None, max_length=50),
    since: Optional[datetime] = None,
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Newest entries first."""
    query = db.query(ActivityLog).filter(ActivityLog.tenant_id == tenant.id)

    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(ActivityLog.entity_id == entity_id)
    if user_id:
        query = query.filter(ActivityLog.user_id == user_id)
    if action:
        query = query.filter(ActivityLog.action == action)
    if since:
        query = query.filter(ActivityLog.created_at >= since)

    entries, total = pagination.apply(query.order_by(ActivityLog.created_at.desc()))

    return ActivityListResponse(items=entries, total=total, page=pagination.page, page_size=pagination.page_size)
