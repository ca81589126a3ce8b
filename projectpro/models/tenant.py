"""
Tenant Model

The tenant (organization) is the primary isolation boundary. Each tenant
is a construction company whose projects, tasks, contacts and documents
are invisible to every other tenant.

Shared database, shared schema: every tenant-owned table carries a
tenant_id column, filtered by the application and enforced again by
the tenant_isolation RLS policy on PostgreSQL.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON, Index, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
import uuid

DEFAULT_PROJECT_CODE_FORMAT = "PRJ-{YEAR}-{NUMBER}"
DEFAULT_PROJECT_CODE_PREFIX = "PRJ"


class Tenant(Base):
    __tablename__ = "tenants"

    # UUIDs avoid enumeration of tenants
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)

    # Subdomain routing (acme.projectpro.app)
    subdomain = Column(String(63), unique=True, nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Organization details
    industry = Column(String(100), nullable=True)
    company_size = Column(String(20), nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(String(512), nullable=True)
    phone = Column(String(50), nullable=True)
    primary_contact_email = Column(String(255), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), default="USA", nullable=True)
    postal_code = Column(String(20), nullable=True)

    settings = Column(JSON, nullable=False, default=dict)

    # Project code numbering, see core.project_codes
    project_code_format = Column(String(100), default=DEFAULT_PROJECT_CODE_FORMAT, nullable=False)
    project_code_prefix = Column(String(20), default=DEFAULT_PROJECT_CODE_PREFIX, nullable=False)
    project_code_auto_generate = Column(Boolean, default=True, nullable=False)
    project_code_next_number = Column(Integer, default=1, nullable=False)

    # Rate limiting overrides, NULL = use global default
    rate_limit_per_minute = Column(Integer, nullable=True)
    rate_limit_burst = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    memberships = relationship("TenantMembership", back_populates="tenant", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="tenant", cascade="all, delete-orphan")
    subscription = relationship(
        "TenantSubscription",
        back_populates="tenant",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "company_size IS NULL OR company_size IN ('small', 'medium', 'large', 'enterprise')",
            name="ck_tenants_company_size",
        ),
        CheckConstraint("project_code_next_number >= 1", name="ck_tenants_code_next_number"),
        Index('idx_tenant_active_subdomain', 'is_active', 'subdomain'),
    )

    def __repr__(self):
        return f"<Tenant {self.slug}>"

    @property
    def plan_name(self) -> str:
        if self.subscription and self.subscription.plan:
            return self.subscription.plan.name
        return "Free"
