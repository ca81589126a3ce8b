"""
Update Log Model

Daily site reports: what happened on a project on a given day,
including weather, completed work, open issues and photos.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, date
from projectpro.database import Base
import uuid


class UpdateLog(Base):
    __tablename__ = "update_logs"

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

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, default=date.today, nullable=False, index=True)

    weather = Column(JSON, nullable=False, default=dict)
    tasks_completed = Column(JSON, nullable=False, default=list)
    issues = Column(JSON, nullable=False, default=list)
    photos = Column(JSON, nullable=False, default=list)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="update_logs")

    __table_args__ = (
        Index('idx_update_logs_project_date', 'project_id', 'date'),
    )

    def __repr__(self):
        return f"<UpdateLog {self.title} {self.date}>"
