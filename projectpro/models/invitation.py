"""
Tenant Invitation Model

Admins invite people by email; the invitee follows a tokenized link,
creates (or signs in to) an account and gains a membership.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
import secrets
import uuid


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(32)


class TenantInvitation(Base):
    __tablename__ = "tenant_invitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    email = Column(String(255), nullable=False, index=True)
    role = Column(String(20), default="member", nullable=False)
    message = Column(Text, nullable=True)

    token = Column(String(64), unique=True, nullable=False, default=generate_invitation_token)

    # pending, accepted, expired, cancelled
    status = Column(String(20), default="pending", nullable=False, index=True)

    invited_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    accepted_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    accepted_at = Column(DateTime, nullable=True)

    tenant = relationship("Tenant")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'manager', 'member', 'viewer')", name="ck_invitations_role"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'expired', 'cancelled')",
            name="ck_invitations_status",
        ),
        Index('idx_invitations_tenant_email', 'tenant_id', 'email'),
    )

    def __repr__(self):
        return f"<TenantInvitation {self.email} -> {self.tenant_id} ({self.status})>"

    @property
    def is_expired(self) -> bool:
        return self.expires_at < datetime.utcnow()
