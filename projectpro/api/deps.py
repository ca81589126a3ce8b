"""
API Dependencies

Reusable FastAPI dependencies for authentication and authorization.

The authenticated principal is a TenantMembership: the pair (user,
tenant) with a role. Endpoints that need the user take
get_current_user; endpoints that check roles take the membership.
FastAPI caches dependencies per request, so both resolve once.
"""
from dataclasses import dataclass
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from projectpro.database import get_db, bind_rls_context
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus
from projectpro.models.tenant import Tenant
from projectpro.models.project import Project
from projectpro.core.security import decode_access_token, verify_token_tenant
from projectpro.core.exceptions import (
    AuthenticationError,
    TenantIsolationError,
    PermissionDenied,
    ProjectNotFoundError,
    InvalidInputError,
)
from projectpro.utils.logging import log_security_event
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_tenant(request: Request, db: Session = Depends(get_db)) -> Tenant:
    """
    Load the tenant resolved by TenantMiddleware into this request's session.

    CRITICAL: Every tenant-scoped query filters on this tenant's id.
    """
    tenant_id = getattr(request.state, "tenant_id", None)
    if not tenant_id:
        logger.error("No tenant in request state - middleware may have failed")
        raise TenantIsolationError("Tenant context not available")

    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise TenantIsolationError("Tenant context not available")
    return tenant


async def get_current_membership(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
) -> TenantMembership:
    """
    Authenticate the bearer token against the request tenant.

    1. Validates the JWT
    2. Requires the token's tenant to equal the request tenant
    3. Loads the user and requires it to be active
    4. Requires an active membership in the tenant
    5. Binds the user to the session for RLS
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    if not verify_token_tenant(payload, tenant.id):
        log_security_event(
            "tenant_isolation_violation",
            {"user_id": user_id, "token_tenant": payload.get("tenant_id"), "tenant_id": tenant.id},
            logger
        )
        raise TenantIsolationError("Token tenant mismatch")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    membership = db.query(TenantMembership).filter(
        TenantMembership.user_id == user.id,
        TenantMembership.tenant_id == tenant.id
    ).first()
    if not membership or membership.status != MembershipStatus.ACTIVE:
        log_security_event(
            "tenant_isolation_violation",
            {"user_id": user.id, "tenant_id": tenant.id, "reason": "no_active_membership"},
            logger
        )
        raise TenantIsolationError("You are not an active member of this organization")

    bind_rls_context(db, tenant_id=tenant.id, user_id=user.id)
    request.state.user_id = user.id
    return membership


async def get_current_user(
    membership: TenantMembership = Depends(get_current_membership)
) -> User:
    return membership.user


def require_role(required_role: TenantRole):
    """
    Dependency factory: the caller's membership, if at least required_role.

        @router.post("", dependencies=[Depends(require_role(TenantRole.ADMIN))])
    """
    async def dependency(
        membership: TenantMembership = Depends(get_current_membership)
    ) -> TenantMembership:
        if not membership.has_permission(required_role):
            log_security_event(
                "privilege_escalation",
                {
                    "user_id": membership.user_id,
                    "tenant_id": membership.tenant_id,
                    "role": membership.role.value,
                    "required": required_role.value,
                },
                logger
            )
            raise PermissionDenied(f"This action requires {required_role.value} role or higher")
        return membership

    return dependency


require_owner = require_role(TenantRole.OWNER)
require_admin = require_role(TenantRole.ADMIN)
require_manager = require_role(TenantRole.MANAGER)
require_member = require_role(TenantRole.MEMBER)


@dataclass
class Pagination:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def apply(self, query):
        """Return (items, total) for a query."""
        total = query.count()
        return query.offset(self.offset).limit(self.page_size).all(), total


def get_pagination(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> Pagination:
    return Pagination(page=page, page_size=page_size)


def get_tenant_project(db: Session, tenant_id: str, project_id: str, include_deleted: bool = False):
    """
    Load a project of the tenant or raise ProjectNotFoundError.

    Projects of other tenants are indistinguishable from missing ones.
    """
    query = db.query(Project).filter(
        Project.id == project_id,
        Project.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    )
    if not include_deleted:
        query = query.filter(Project.is_deleted == False)  # noqa: E712
    project = query.first()
    if not project:
        raise ProjectNotFoundError(project_id)
    return project


def get_active_member(db: Session, tenant_id: str, user_id: str) -> TenantMembership:
    """The user's active membership in the tenant, or InvalidInputError."""
    membership = db.query(TenantMembership).filter(
        TenantMembership.tenant_id == tenant_id,
        TenantMembership.user_id == user_id,
        TenantMembership.status == MembershipStatus.ACTIVE
    ).first()
    if not membership:
        raise InvalidInputError(f"User {user_id} is not an active member of this organization")
    return membership
