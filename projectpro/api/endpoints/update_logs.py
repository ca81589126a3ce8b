"""
Update Log Endpoints (daily site reports)

Members file reports against a project. A report can be edited or
deleted by whoever filed it, or by an admin.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.update_log import UpdateLog
from projectpro.models.tenant import Tenant
from projectpro.schemas.update_log import UpdateLogCreate, UpdateLogUpdate, UpdateLogResponse, UpdateLogListResponse
from projectpro.api.deps import (
    get_current_membership,
    get_current_tenant,
    require_member,
    get_tenant_project,
    Pagination,
    get_pagination,
)
from projectpro.core.permissions import can_modify_owned
from projectpro.core.exceptions import NotFoundError, InvalidInputError, PermissionDenied
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/update-logs", tags=["update-logs"])


def get_tenant_update_log(db: Session, tenant_id: str, log_id: str) -> UpdateLog:
    update_log = db.query(UpdateLog).filter(
        UpdateLog.id == log_id,
        UpdateLog.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    ).first()
    if not update_log:
        raise NotFoundError("Update log", log_id)
    return update_log


@router.get("", response_model=UpdateLogListResponse)
async def list_update_logs(
    project_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Newest reports first. date_from and date_to are inclusive."""
    if date_from and date_to and date_to < date_from:
        raise InvalidInputError("date_to must be on or after date_from")

    query = db.query(UpdateLog).filter(UpdateLog.tenant_id == tenant.id)

    if project_id:
        query = query.filter(UpdateLog.project_id == project_id)
    if date_from:
        query = query.filter(UpdateLog.date >= date_from)
    if date_to:
        query = query.filter(UpdateLog.date <= date_to)

    logs, total = pagination.apply(query.order_by(UpdateLog.date.desc(), UpdateLog.created_at.desc()))

    return UpdateLogListResponse(items=logs, total=total, page=pagination.page, page_size=pagination.page_size)


@router.get("/{log_id}", response_model=UpdateLogResponse)
async def get_update_log(
    log_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return get_tenant_update_log(db, tenant.id, log_id)


@router.post("", response_model=UpdateLogResponse, status_code=status.HTTP_201_CREATED)
async def create_update_log(
    log_data: UpdateLogCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    project = get_tenant_project(db, tenant.id, log_data.project_id)

    values = log_data.model_dump(exclude={"project_id"})
    values["date"] = values["date"] or date.today()

    update_log = UpdateLog(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        project_id=project.id,
        created_by=current.user_id,
        created_by_name=current.user.display_name,
        **values
    )
    db.add(update_log)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "update_log", update_log.id, update_log.title,
                 details={"project_id": project.id, "date": update_log.date.isoformat()}, request=request)
    db.commit()
    db.refresh(update_log)

    logger.info(f"Update log created: {update_log.id} for project {project.id} by {current.user_id}")

    return update_log


@router.patch("/{log_id}", response_model=UpdateLogResponse)
async def update_update_log(
    log_id: str,
    log_data: UpdateLogUpdate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    update_log = get_tenant_update_log(db, tenant.id, log_id)

    if not can_modify_owned(current, update_log.created_by):
        raise PermissionDenied("Only the author or an admin can edit this report")

    update_data = log_data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        setattr(update_log, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "update_log", update_log.id, update_log.title,
                 details={"fields": sorted(update_data)}, request=request)
    db.commit()
    db.refresh(update_log)

    return update_log


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_update_log(
    log_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    update_log = get_tenant_update_log(db, tenant.id, log_id)

    if not can_modify_owned(current, update_log.created_by):
        raise PermissionDenied("Only the author or an admin can delete this report")

    log_activity(db, tenant.id, current.user_id, "deleted", "update_log", update_log.id, update_log.title,
                 request=request)
    db.delete(update_log)
    db.commit()

    logger.info(f"Update log deleted: {log_id} by {current.user_id}")
    return None
