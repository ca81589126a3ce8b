"""
Calendar Event Model

Site meetings, inspections, deliveries and deadlines shown on the
tenant calendar and the project Gantt view.
"""
from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, Integer, JSON, CheckConstraint,
)
from datetime import datetime
from projectpro.database import Base
from projectpro.models.project import _in_list
import uuid

EVENT_TYPES = ("meeting", "inspection", "delivery", "deadline", "milestone", "site_visit", "other")


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

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

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)
    all_day = Column(Boolean, default=False, nullable=False)
    location = Column(String(255), nullable=True)
    event_type = Column(String(20), default="meeting", nullable=False)
    color = Column(String(20), nullable=True)
    reminder_minutes = Column(Integer, nullable=True)
    recurrence_rule = Column(String(255), nullable=True)  # RFC 5545 RRULE
    attendees = Column(JSON, nullable=False, default=list)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("end_time >= start_time", name="ck_calendar_events_time_range"),
        CheckConstraint(_in_list("event_type", EVENT_TYPES), name="ck_calendar_events_type"),
        CheckConstraint(
            "reminder_minutes IS NULL OR reminder_minutes >= 0",
            name="ck_calendar_events_reminder",
        ),
        Index('idx_calendar_events_tenant_start', 'tenant_id', 'start_time'),
    )

    def __repr__(self):
        return f"<CalendarEvent {self.title} {self.start_time:%Y-%m-%d}>"
