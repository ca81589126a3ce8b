"""
Activity Log Model

Append-only audit trail of who changed what inside a tenant.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, JSON
from datetime import datetime
from projectpro.database import Base
import uuid


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(50), nullable=False)  # created, updated, deleted, ...
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False)
    entity_name = Column(String(255), nullable=True)
    details = Column(JSON, nullable=False, default=dict)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_activity_entity', 'entity_type', 'entity_id'),
        Index('idx_activity_tenant_created', 'tenant_id', 'created_at'),
    )

    def __repr__(self):
        return f"<ActivityLog {self.action} {self.entity_type}:{self.entity_id}>"
