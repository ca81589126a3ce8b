"""
Tenant Provisioning

Creating an organization always creates its owner membership and a
Free subscription in the same transaction. Used by signup and by the
`projectpro create-tenant` command.
"""
from typing import Optional
from sqlalchemy.orm import Session
import re

from projectpro.database import bind_rls_context
from projectpro.models.billing import SubscriptionPlan
from projectpro.models.tenant import Tenant
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus
from projectpro.core.billing import ensure_default_plans, subscribe, FREE_PLAN

SLUG_MAX_LENGTH = 90


def slugify(name: str) -> str:
    """'Acme Builders, Inc.' -> 'acme-builders-inc'"""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].strip("-") or "org"


def unique_slug(db: Session, name: str) -> str:
    """Derive a slug from the name, suffixing -2, -3... while it is taken."""
    base = slugify(name)
    slug = base
    suffix = 2
    while db.query(Tenant.id).filter(Tenant.slug == slug).first():
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def provision_tenant(
    db: Session,
    name: str,
    owner: User,
    industry: Optional[str] = None,
    company_size: Optional[str] = None,
    slug: Optional[str] = None,
) -> Tenant:
    """
    Create a tenant owned by `owner` and subscribe it to the Free plan.

    The owner may be a new (unflushed) user. The caller commits.
    """
    tenant = Tenant(
        name=name,
        slug=slug or unique_slug(db, name),
        industry=industry or "construction",
        company_size=company_size,
        primary_contact_email=owner.email,
    )
    db.add(tenant)
    db.flush()

    db.add(TenantMembership(
        user_id=owner.id,
        tenant_id=tenant.id,
        role=TenantRole.OWNER,
        status=MembershipStatus.ACTIVE,
    ))
    db.flush()

    # Tenant-scoped rows below are written under the new principal
    bind_rls_context(db, tenant_id=tenant.id, user_id=owner.id)

    ensure_default_plans(db)
    free_plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.name == FREE_PLAN).one()
    subscribe(db, tenant.id, free_plan)

    return tenant
