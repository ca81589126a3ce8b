"""
Project Model

A construction project (job). Projects are tenant-scoped, carry an
organization-specific project code, a site location and budget data,
and own tasks, documents, daily update logs and calendar events.
"""
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, Date, ForeignKey, Index, Integer, Numeric,
    JSON, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
import uuid

PROJECT_STATUSES = ("Not Started", "Planning", "In Progress", "On Hold", "Completed", "Cancelled")
PRIORITIES = ("low", "medium", "high", "critical")
PROJECT_MEMBER_ROLES = ("lead", "manager", "member", "viewer")


def _in_list(column: str, values) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # CRITICAL: Tenant foreign key for isolation
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Unique per tenant, generated from the tenant's format when omitted
    project_code = Column(String(50), nullable=True)
    code_auto_generated = Column(Boolean, default=False, nullable=False)

    status = Column(String(20), default="Planning", nullable=False, index=True)
    priority = Column(String(10), default="medium", nullable=False)

    budget = Column(Numeric(15, 2, asdecimal=False), nullable=True)
    spent = Column(Numeric(15, 2, asdecimal=False), default=0, nullable=False)

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    actual_end_date = Column(Date, nullable=True)
    progress = Column(Integer, default=0, nullable=False)

    # Site location
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    latitude = Column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude = Column(Numeric(11, 8, asdecimal=False), nullable=True)
    work_location = Column(String(255), nullable=True)

    client_name = Column(String(255), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    project_manager_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Soft delete so removed projects can be restored
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="projects")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="project", cascade="all, delete-orphan")
    update_logs = relationship("UpdateLog", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'project_code', name='uq_projects_tenant_code'),
        CheckConstraint(_in_list("status", PROJECT_STATUSES), name="ck_projects_status"),
        CheckConstraint(_in_list("priority", PRIORITIES), name="ck_projects_priority"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress"),
        CheckConstraint(
            "end_date IS NULL OR start_date IS NULL OR end_date >= start_date",
            name="ck_projects_dates",
        ),
        Index('idx_project_tenant_status', 'tenant_id', 'is_deleted', 'status'),
        Index('idx_project_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<Project {self.project_code or self.name} (tenant={self.tenant_id})>"

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = datetime.utcnow()

    def restore(self):
        self.is_deleted = False
        self.deleted_at = None

    @property
    def budget_remaining(self):
        if self.budget is None:
            return None
        return round(self.budget - (self.spent or 0), 2)


class ProjectMember(Base):
    """Assignment of a tenant member to a project team."""

    __tablename__ = "project_members"

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
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role = Column(String(20), default="member", nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="members")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('project_id', 'user_id', name='uq_project_members_project_user'),
        CheckConstraint(_in_list("role", PROJECT_MEMBER_ROLES), name="ck_project_members_role"),
    )
