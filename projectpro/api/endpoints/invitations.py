"""
Invitation Endpoints

Admins invite people by email. Each invitation carries a one-time
token; the link built from it is logged and returned to the caller
(delivering the email is left to an external mail service).

lookup and accept are public: the invitee has no token yet.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional

from projectpro.config import get_settings
from projectpro.database import get_db, bind_rls_context
from projectpro.models.invitation import TenantInvitation
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus
from projectpro.models.tenant import Tenant
from projectpro.schemas.auth import Token
from projectpro.schemas.invitation import (
    InvitationCreate,
    InvitationResult,
    InvitationBatchResponse,
    InvitationResponse,
    InvitationLookupResponse,
    InvitationAccept,
)
from projectpro.api.deps import get_current_tenant, require_admin
from projectpro.core.billing import check_seat_limit
from projectpro.core.security import get_password_hash, verify_password, create_session_token
from projectpro.core.exceptions import (
    NotFoundError, InvalidInputError, ConflictError, AuthenticationError, PlanLimitExceeded
)
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/invitations", tags=["invitations"])


def invitation_url(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/invite/{token}"


def _load_valid_invitation(db: Session, token: str) -> TenantInvitation:
    """Return a pending, unexpired invitation; expired ones are marked expired."""
    invitation = db.query(TenantInvitation).filter(TenantInvitation.token == token).first()
    if not invitation:
        raise NotFoundError("Invitation")

    if invitation.status != "pending":
        raise InvalidInputError(f"Invitation is {invitation.status}")

    if invitation.is_expired:
        invitation.status = "expired"
        db.commit()
        raise InvalidInputError("Invitation has expired")

    return invitation


@router.post("", response_model=InvitationBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_invitations(
    invitation_data: InvitationCreate,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Invite one or more people.

    Each email succeeds or fails on its own: already a member, already
    invited, or no seat left on the plan. Seats are taken in the order the
    emails were given. When the plan has no seat for any of them the
    request fails with 402.
    """
    results = []
    candidates = []
    seen = set()

    for raw_email in invitation_data.emails:
        email = raw_email.lower()
        if email in seen:
            continue
        seen.add(email)

        is_member = db.query(TenantMembership.id).join(
            User, User.id == TenantMembership.user_id
        ).filter(
            TenantMembership.tenant_id == tenant.id,
            User.email == email
        ).first()
        if is_member:
            results.append(InvitationResult(email=email, success=False, error="Already a member of this organization"))
            continue

        pending = db.query(TenantInvitation).filter(
            TenantInvitation.tenant_id == tenant.id,
            TenantInvitation.email == email,
            TenantInvitation.status == "pending",
            TenantInvitation.expires_at > datetime.utcnow()
        ).first()
        if pending:
            results.append(InvitationResult(email=email, success=False, error="An invitation is already pending"))
            continue

        candidates.append(email)

    seat_error = None
    expires_at = datetime.utcnow() + timedelta(days=settings.INVITATION_EXPIRE_DAYS)
    for email in candidates:
        try:
            check_seat_limit(db, tenant.id)
        except PlanLimitExceeded as exc:
            seat_error = exc
            results.append(InvitationResult(email=email, success=False, error=exc.detail))
            continue

        invitation = TenantInvitation(
            tenant_id=tenant.id,
            email=email,
            role=invitation_data.role,
            message=invitation_data.message,
            invited_by=current.user_id,
            expires_at=expires_at,
        )
        db.add(invitation)
        db.flush()

        url = invitation_url(invitation.token)
        log_activity(db, tenant.id, current.user_id, "invited", "invitation", invitation.id, email,
                     details={"role": invitation.role}, request=request)
        logger.info(f"Invitation created: {invitation.id} for {email} by {current.user_id}: {url}")
        results.append(InvitationResult(email=email, success=True, id=invitation.id, url=url))

    sent = sum(1 for result in results if result.success)
    if seat_error is not None and sent == 0:
        raise seat_error

    db.commit()

    return InvitationBatchResponse(results=results, sent=sent, failed=len(results) - sent)


@router.get("", response_model=list[InvitationResponse])
async def list_invitations(
    invitation_status: Optional[str] = Query(
        "pending", alias="status", pattern="^(pending|accepted|expired|cancelled|all)$"
    ),
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    query = db.query(TenantInvitation).filter(TenantInvitation.tenant_id == tenant.id)
    if invitation_status != "all":
        query = query.filter(TenantInvitation.status == invitation_status)
    return query.order_by(TenantInvitation.created_at.desc()).all()


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_invitation(
    invitation_id: str,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    invitation = db.query(TenantInvitation).filter(
        TenantInvitation.id == invitation_id,
        TenantInvitation.tenant_id == tenant.id  # CRITICAL
    ).first()
    if not invitation:
        raise NotFoundError("Invitation", invitation_id)
    if invitation.status != "pending":
        raise InvalidInputError(f"Invitation is {invitation.status}")

    invitation.status = "cancelled"
    log_activity(db, tenant.id, current.user_id, "cancelled", "invitation", invitation.id,
                 invitation.email, request=request)
    db.commit()

    logger.info(f"Invitation cancelled: {invitation_id} by {current.user_id}")
    return None


@router.get("/lookup/{token}", response_model=InvitationLookupResponse)
async def lookup_invitation(token: str, db: Session = Depends(get_db)):
    """Public: what an invitation link points to."""
    invitation = _load_valid_invitation(db, token)
    user_exists = db.query(User.id).filter(User.email == invitation.email).first() is not None

    return InvitationLookupResponse(
        email=invitation.email,
        role=invitation.role,
        message=invitation.message,
        tenant_name=invitation.tenant.name,
        tenant_slug=invitation.tenant.slug,
        expires_at=invitation.expires_at,
        user_exists=user_exists,
    )


@router.post("/accept", response_model=Token)
async def accept_invitation(
    body: InvitationAccept,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Public: join the organization.

    New emails get an account with the given password; existing
    accounts must confirm their current password.
    """
    invitation = _load_valid_invitation(db, body.token)
    tenant = invitation.tenant
    if not tenant.is_active:
        raise InvalidInputError("Organization is inactive")

    user = db.query(User).filter(User.email == invitation.email).first()
    if user:
        if not verify_password(body.password, user.hashed_password):
            log_security_event(
                "failed_login",
                {"reason": "invitation_bad_password", "user_id": user.id, "tenant_id": tenant.id},
                logger
            )
            raise AuthenticationError("Invalid credentials")
    else:
        user = User(
            email=invitation.email,
            hashed_password=get_password_hash(body.password),
            full_name=body.full_name or invitation.email.split("@")[0],
            is_active=True,
            # Following the emailed link proves the address
            is_verified=True,
        )
        db.add(user)
        db.flush()

    role = TenantRole(invitation.role)
    membership = db.query(TenantMembership).filter(
        TenantMembership.user_id == user.id,
        TenantMembership.tenant_id == tenant.id
    ).first()
    if membership and membership.status == MembershipStatus.ACTIVE:
        raise ConflictError("Already a member of this organization")
    if membership:
        membership.role = role
        membership.status = MembershipStatus.ACTIVE
        membership.invited_by = invitation.invited_by
    else:
        membership = TenantMembership(
            user_id=user.id,
            tenant_id=tenant.id,
            role=role,
            status=MembershipStatus.ACTIVE,
            invited_by=invitation.invited_by,
        )
        db.add(membership)

    invitation.status = "accepted"
    invitation.accepted_by = user.id
    invitation.accepted_at = datetime.utcnow()
    db.flush()

    bind_rls_context(db, tenant_id=tenant.id, user_id=user.id)
    log_activity(db, tenant.id, user.id, "joined", "membership", membership.id, user.email,
                 details={"role": role.value, "invitation_id": invitation.id}, request=request)
    db.commit()

    logger.info(f"Invitation accepted: {invitation.id} by {user.id} into {tenant.id}")

    return create_session_token(user.id, tenant.id, role.value)
