"""
Team Management Endpoints

Members of the current organization and their roles.

RBAC:
- List team: All members
- Change role/status: Admin or owner; only owners touch owners
- Remove member: Admin or owner, never yourself

An organization always keeps at least one active owner.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional

from projectpro.database import get_db
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus
from projectpro.models.project import ProjectMember
from projectpro.models.tenant import Tenant
from projectpro.schemas.user import TeamMemberResponse, TeamMemberUpdate, TeamListResponse
from projectpro.api.deps import get_current_membership, get_current_tenant, require_admin, Pagination, get_pagination
from projectpro.core.permissions import can_manage_member
from projectpro.core.exceptions import UserNotFoundError, PermissionDenied, ConflictError, InvalidInputError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/team", tags=["team"])


def _to_response(membership: TenantMembership, user: User) -> TeamMemberResponse:
    return TeamMemberResponse(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        job_title=user.job_title,
        role=membership.role,
        status=membership.status,
        joined_at=membership.joined_at,
        last_login_at=user.last_login_at,
    )


def _get_membership(db: Session, tenant_id: str, user_id: str) -> TenantMembership:
    membership = db.query(TenantMembership).filter(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.user_id == user_id
    ).first()
    if not membership:
        raise UserNotFoundError(user_id)
    return membership


def count_active_owners(db: Session, tenant_id: str) -> int:
    return db.query(func.count(TenantMembership.id)).filter(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.role == TenantRole.OWNER,
        TenantMembership.status == MembershipStatus.ACTIVE
    ).scalar()


def _check_manage(actor: TenantMembership, target: TenantMembership, new_role: Optional[TenantRole] = None):
    if not can_manage_member(actor, target, new_role):
        log_security_event(
            "privilege_escalation",
            {"user_id": actor.user_id, "tenant_id": actor.tenant_id, "target": target.user_id},
            logger
        )
        raise PermissionDenied("Only owners can manage owners or grant the owner role")


@router.get("", response_model=TeamListResponse)
async def list_team(
    role: Optional[TenantRole] = Query(None),
    member_status: Optional[MembershipStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    List members of the current organization.

    TENANT_ISOLATION: Only memberships of the request tenant.
    """
    query = db.query(TenantMembership, User).join(
        User, User.id == TenantMembership.user_id
    ).filter(TenantMembership.tenant_id == tenant.id)

    if role:
        query = query.filter(TenantMembership.role == role)
    if member_status:
        query = query.filter(TenantMembership.status == member_status)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            func.lower(User.email).like(pattern) | func.lower(User.full_name).like(pattern)
        )

    rows, total = pagination.apply(query.order_by(TenantMembership.joined_at))

    return TeamListResponse(
        items=[_to_response(membership, user) for membership, user in rows],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size
    )


@router.patch("/{user_id}", response_model=TeamMemberResponse)
async def update_team_member(
    user_id: str,
    update: TeamMemberUpdate,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Change a member's role or status."""
    target = _get_membership(db, tenant.id, user_id)
    _check_manage(current, target, update.role)

    new_role = update.role or target.role
    new_status = update.status or target.status

    losing_owner = target.role == TenantRole.OWNER and target.status == MembershipStatus.ACTIVE and (
        new_role != TenantRole.OWNER or new_status != MembershipStatus.ACTIVE
    )
    if losing_owner and count_active_owners(db, tenant.id) <= 1:
        raise ConflictError("An organization must keep at least one owner")

    changes = {}
    if new_role != target.role:
        changes["role"] = {"from": target.role.value, "to": new_role.value}
        target.role = new_role
    if new_status != target.status:
        changes["status"] = {"from": target.status.value, "to": new_status.value}
        target.status = new_status

    log_activity(db, tenant.id, current.user_id, "updated", "membership", target.id,
                 target.user.email, details=changes, request=request)
    db.commit()
    db.refresh(target)

    logger.info(f"Membership updated: {target.user_id} in {tenant.id} by {current.user_id}: {changes}")

    return _to_response(target, target.user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team_member(
    user_id: str,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Remove a member from the organization (the user account stays)."""
    if user_id == current.user_id:
        raise InvalidInputError("You cannot remove yourself from the organization")

    target = _get_membership(db, tenant.id, user_id)
    _check_manage(current, target)

    if target.role == TenantRole.OWNER and count_active_owners(db, tenant.id) <= 1:
        raise ConflictError("An organization must keep at least one owner")

    db.query(ProjectMember).filter(
        ProjectMember.tenant_id == tenant.id,
        ProjectMember.user_id == user_id
    ).delete(synchronize_session=False)

    log_activity(db, tenant.id, current.user_id, "removed", "membership", target.id,
                 target.user.email, request=request)
    db.delete(target)
    db.commit()

    logger.info(f"Member removed: {user_id} from {tenant.id} by {current.user_id}")
    return None
