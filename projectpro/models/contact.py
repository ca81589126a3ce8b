"""
Contact Model

External people and companies a construction tenant works with:
vendors, contractors, design professionals, customers. They can be
tagged on tasks and are searched from the vendors directory.
"""
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, JSON, CheckConstraint, UniqueConstraint,
)
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import _in_list
import uuid

CONTACT_TYPES = (
    "vendor",
    "contractor",
    "subcontractor",
    "design_professional",
    "consultant",
    "customer",
    "other",
)


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    contact_type = Column(String(30), default="vendor", nullable=False, index=True)
    name = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    mobile = Column(String(50), nullable=True)
    trade = Column(String(100), nullable=True)  # electrical, plumbing, framing...

    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip = Column(String(20), nullable=True)
    country = Column(String(100), default="USA", nullable=True)

    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # NULL emails do not collide
        UniqueConstraint('tenant_id', 'email', name='uq_contacts_tenant_email'),
        CheckConstraint(_in_list("contact_type", CONTACT_TYPES), name="ck_contacts_type"),
        Index('idx_contacts_tenant_type', 'tenant_id', 'contact_type'),
        Index('idx_contacts_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<Contact {self.name} ({self.contact_type})>"
