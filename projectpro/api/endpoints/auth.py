"""
Authentication Endpoints

Signup creates an organization together with its owner; login and
tenant switching issue tokens bound to one organization.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from datetime import datetime

from projectpro.database import get_db
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus
from projectpro.models.tenant import Tenant
from projectpro.schemas.auth import LoginRequest, SignupRequest, SwitchTenantRequest, Token
from projectpro.schemas.user import UserResponse, ProfileUpdate, MeResponse, MembershipSummary
from projectpro.api.deps import get_current_membership, get_current_user
from projectpro.core.security import verify_password, get_password_hash, create_session_token
from projectpro.core.exceptions import AuthenticationError, TenantIsolationError
from projectpro.core.tenancy import provision_tenant
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_data: SignupRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Create an organization and its owner.

    An existing account can create another organization by signing up
    with the same email and its current password.
    """
    email = signup_data.email.lower()
    user = db.query(User).filter(User.email == email).first()

    if user:
        if not verify_password(signup_data.password, user.hashed_password):
            log_security_event(
                "failed_login",
                {"reason": "signup_existing_email_bad_password", "user_id": user.id},
                logger
            )
            raise AuthenticationError("An account with this email already exists; sign in with its password")
        if not user.is_active:
            raise AuthenticationError("User account is inactive")
    else:
        user = User(
            email=email,
            hashed_password=get_password_hash(signup_data.password),
            full_name=signup_data.full_name,
            is_active=True,
            is_verified=False
        )
        db.add(user)

    tenant = provision_tenant(
        db,
        signup_data.organization_name,
        user,
        industry=signup_data.industry,
        company_size=signup_data.company_size,
    )

    log_activity(db, tenant.id, user.id, "created", "tenant", tenant.id, tenant.name, request=request)
    db.commit()

    logger.info(f"Tenant created: {tenant.id} ({tenant.slug}) by {user.id}")

    return create_session_token(user.id, tenant.id, TenantRole.OWNER.value)


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return a JWT for the requested organization.

    SECURITY: Every failure answers "Invalid credentials" so responses
    do not reveal which organizations or emails exist.
    """
    tenant = db.query(Tenant).filter(
        Tenant.slug == credentials.tenant_slug.strip().lower()
    ).first()

    if not tenant:
        log_security_event(
            "failed_login",
            {"reason": "tenant_not_found", "tenant_slug": credentials.tenant_slug},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not tenant.is_active:
        log_security_event("failed_login", {"reason": "tenant_inactive", "tenant_id": tenant.id}, logger)
        raise AuthenticationError("Invalid credentials")

    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        log_security_event(
            "failed_login",
            {"reason": "bad_email_or_password", "tenant_id": tenant.id},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event("failed_login", {"reason": "user_inactive", "user_id": user.id}, logger)
        raise AuthenticationError("Invalid credentials")

    membership = db.query(TenantMembership).filter(
        TenantMembership.user_id == user.id,
        TenantMembership.tenant_id == tenant.id,
        TenantMembership.status == MembershipStatus.ACTIVE
    ).first()

    if not membership:
        log_security_event(
            "failed_login",
            {"reason": "no_membership", "user_id": user.id, "tenant_id": tenant.id},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = datetime.utcnow()
    db.commit()

    logger.info(f"Successful login: user={user.id}, tenant={tenant.id}")

    return create_session_token(user.id, tenant.id, membership.role.value)


@router.post("/switch-tenant", response_model=Token)
async def switch_tenant(
    body: SwitchTenantRequest,
    current: TenantMembership = Depends(get_current_membership),
    db: Session = Depends(get_db)
):
    """Issue a token for another organization the caller belongs to."""
    target = db.query(TenantMembership).join(Tenant).filter(
        TenantMembership.user_id == current.user_id,
        TenantMembership.tenant_id == body.tenant_id,
        TenantMembership.status == MembershipStatus.ACTIVE,
        Tenant.is_active == True  # noqa: E712
    ).first()

    if not target:
        log_security_event(
            "tenant_isolation_violation",
            {"user_id": current.user_id, "tenant_id": body.tenant_id, "reason": "switch_without_membership"},
            logger
        )
        raise TenantIsolationError("You are not an active member of that organization")

    logger.info(f"User {current.user_id} switched to tenant {target.tenant_id}")

    return create_session_token(current.user_id, target.tenant_id, target.role.value)


def _me_response(db: Session, user: User, current: TenantMembership) -> MeResponse:
    rows = db.query(TenantMembership, Tenant).join(
        Tenant, Tenant.id == TenantMembership.tenant_id
    ).filter(
        TenantMembership.user_id == user.id
    ).order_by(Tenant.name).all()

    return MeResponse(
        user=UserResponse.model_validate(user),
        current_tenant_id=current.tenant_id,
        role=current.role,
        memberships=[
            MembershipSummary(
                tenant_id=tenant.id,
                tenant_name=tenant.name,
                tenant_slug=tenant.slug,
                role=membership.role,
                status=membership.status,
                joined_at=membership.joined_at,
            )
            for membership, tenant in rows
        ],
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    current: TenantMembership = Depends(get_current_membership),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's profile and every organization membership."""
    return _me_response(db, current_user, current)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    profile: ProfileUpdate,
    current: TenantMembership = Depends(get_current_membership),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    for field, value in profile.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)

    logger.info(f"Profile updated: {current_user.id}")

    return _me_response(db, current_user, current)
