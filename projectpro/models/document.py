"""
Document Model

Drawings, contracts, permits, invoices and photos. A document is
tenant-scoped and optionally attached to a project:
    Tenant -> (Project) -> Document

tenant_id is stored even when project_id is set so every query and
RLS policy can filter without joining projects.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Integer, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import _in_list
import uuid

DOCUMENT_CATEGORIES = (
    "drawing",
    "contract",
    "permit",
    "invoice",
    "photo",
    "report",
    "specification",
    "other",
)


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    name = Column(String(255), nullable=False)
    category = Column(String(30), default="other", nullable=False, index=True)
    description = Column(Text, nullable=True)

    content = Column(Text, nullable=True)  # text documents and notes
    file_url = Column(String(512), nullable=True)  # object storage URL
    file_size = Column(Integer, nullable=True)  # bytes
    mime_type = Column(String(100), nullable=True)
    document_metadata = Column(JSON, nullable=False, default=dict)

    version = Column(Integer, default=1, nullable=False)

    uploaded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="documents")

    __table_args__ = (
        CheckConstraint(_in_list("category", DOCUMENT_CATEGORIES), name="ck_documents_category"),
        CheckConstraint("file_size IS NULL OR file_size >= 0", name="ck_documents_file_size"),
        Index('idx_documents_project_created', 'project_id', 'created_at'),
        Index('idx_documents_tenant_category', 'tenant_id', 'category'),
    )

    def __repr__(self):
        return f"<Document {self.name} category={self.category} (tenant={self.tenant_id})>"

    @property
    def file_size_mb(self):
        if self.file_size:
            return round(self.file_size / (1024 * 1024), 2)
        return 0
