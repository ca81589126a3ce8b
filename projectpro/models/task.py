"""
Task Models

Tasks belong to a project and repeat its tenant_id so they can be
filtered (and policed by RLS) without joining projects.
"""
from sqlalchemy import (
    Column, String, Text, DateTime, ForeignKey, Index, Integer, Numeric, JSON,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import PRIORITIES, _in_list
import uuid

TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled", "blocked")
TASK_TYPES = ("task", "milestone", "deliverable", "inspection", "meeting")
DEPENDENCY_TYPES = ("finish_to_start", "start_to_start", "finish_to_finish", "start_to_finish")


class Task(Base):
    __tablename__ = "tasks"

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
    parent_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False, index=True)
    priority = Column(String(10), default="medium", nullable=False)
    task_type = Column(String(20), default="task", nullable=False)

    assigned_to = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    start_date = Column(DateTime, nullable=True)
    due_date = Column(DateTime, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)

    progress = Column(Integer, default=0, nullable=False)
    estimated_hours = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    actual_hours = Column(Numeric(10, 2, asdecimal=False), nullable=True)

    # Ordering inside a kanban column (one column per status)
    position = Column(Integer, default=0, nullable=False)

    tags = Column(JSON, nullable=False, default=list)
    checklist = Column(JSON, nullable=False, default=list)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assigned_to])
    dependencies = relationship(
        "TaskDependency",
        foreign_keys="TaskDependency.task_id",
        back_populates="task",
        cascade="all, delete-orphan",
    )
    comments = relationship("TaskComment", back_populates="task", cascade="all, delete-orphan")
    contact_links = relationship("TaskContact", back_populates="task", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(_in_list("status", TASK_STATUSES), name="ck_tasks_status"),
        CheckConstraint(_in_list("priority", PRIORITIES), name="ck_tasks_priority"),
        CheckConstraint(_in_list("task_type", TASK_TYPES), name="ck_tasks_type"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_tasks_progress"),
        Index('idx_tasks_tenant_status', 'tenant_id', 'status'),
        Index('idx_tasks_project_status_position', 'project_id', 'status', 'position'),
    )

    def __repr__(self):
        return f"<Task {self.title} ({self.status})>"

    @property
    def is_overdue(self) -> bool:
        return (
            self.due_date is not None
            and self.status not in ("completed", "cancelled")
            and self.due_date < datetime.utcnow()
        )

    @property
    def contacts(self):
        return [link.contact for link in self.contact_links]


class TaskDependency(Base):
    """task_id cannot proceed until depends_on_task_id satisfies dependency_type."""

    __tablename__ = "task_dependencies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    depends_on_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    dependency_type = Column(String(20), default="finish_to_start", nullable=False)
    lag_days = Column(Integer, default=0, nullable=False)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    task = relationship("Task", foreign_keys=[task_id], back_populates="dependencies")
    depends_on = relationship("Task", foreign_keys=[depends_on_task_id])

    __table_args__ = (
        UniqueConstraint('task_id', 'depends_on_task_id', name='uq_task_dependencies_pair'),
        CheckConstraint("task_id <> depends_on_task_id", name="ck_task_dependencies_not_self"),
        CheckConstraint(_in_list("dependency_type", DEPENDENCY_TYPES), name="ck_task_dependencies_type"),
        CheckConstraint("lag_days >= 0", name="ck_task_dependencies_lag"),
    )


class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comment = Column(Text, nullable=False)
    attachments = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    task = relationship("Task", back_populates="comments")
    author = relationship("User")


class TaskContact(Base):
    """Vendor/contractor/design professional tagged on a task."""

    __tablename__ = "task_contacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(String(36), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    task = relationship("Task", back_populates="contact_links")
    contact = relationship("Contact")

    __table_args__ = (
        UniqueConstraint('task_id', 'contact_id', name='uq_task_contacts_pair'),
    )
