"""
User and Membership Models

Users are global identities; what a user may do is decided by their
membership in a tenant (the user_tenants table). One person can work
for several construction companies and switch between them.

IMPORTANT: user_tenants is also what the database RLS policies consult,
so a row there is the authoritative "this user belongs to this tenant".
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
import uuid
import enum


class TenantRole(str, enum.Enum):
    """
    Roles a user can hold inside a tenant.

    OWNER: Everything, including billing and transferring ownership
    ADMIN: Manage team, settings and invitations
    MANAGER: Run projects
    MEMBER: Create and edit day-to-day records
    VIEWER: Read-only
    """
    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


ROLE_HIERARCHY = {
    TenantRole.VIEWER: 1,
    TenantRole.MEMBER: 2,
    TenantRole.MANAGER: 3,
    TenantRole.ADMIN: 4,
    TenantRole.OWNER: 5,
}


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    job_title = Column(String(100), nullable=True)
    avatar_url = Column(String(512), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    memberships = relationship(
        "TenantMembership",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="TenantMembership.user_id",
    )

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class TenantMembership(Base):
    __tablename__ = "user_tenants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Stored as plain strings ('admin', not 'ADMIN') because the RLS
    # policies compare against them in SQL.
    role = Column(
        SQLEnum(TenantRole, native_enum=False, values_callable=_enum_values, length=20,
                name="tenant_role"),
        default=TenantRole.MEMBER,
        nullable=False,
        index=True
    )
    status = Column(
        SQLEnum(MembershipStatus, native_enum=False, values_callable=_enum_values, length=20,
                name="membership_status"),
        default=MembershipStatus.ACTIVE,
        nullable=False
    )

    invited_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])
    tenant = relationship("Tenant", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('user_id', 'tenant_id', name='uq_user_tenants_user_tenant'),
        Index('idx_user_tenants_tenant_role', 'tenant_id', 'role'),
    )

    def __repr__(self):
        return f"<TenantMembership user={self.user_id} tenant={self.tenant_id} role={self.role}>"

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE

    def has_permission(self, required_role: TenantRole) -> bool:
        """Simple hierarchy: OWNER > ADMIN > MANAGER > MEMBER > VIEWER."""
        return ROLE_HIERARCHY[self.role] >= ROLE_HIERARCHY[required_role]
