"""
Calendar Endpoints

Site meetings, inspections, deliveries and deadlines.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.calendar import CalendarEvent
from projectpro.models.tenant import Tenant
from projectpro.schemas.calendar import EventCreate, EventUpdate, EventResponse
from projectpro.schemas.project import naive_utc
from projectpro.api.deps import get_current_membership, get_current_tenant, require_member, get_tenant_project
from projectpro.core.exceptions import NotFoundError, InvalidInputError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/calendar/events", tags=["calendar"])


def get_tenant_event(db: Session, tenant_id: str, event_id: str) -> CalendarEvent:
    event = db.query(CalendarEvent).filter(
        CalendarEvent.id == event_id,
        CalendarEvent.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    ).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


@router.get("", response_model=list[EventResponse])
async def list_events(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    project_id: Optional[str] = None,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Events overlapping the window [start, end).

    An event is returned when it starts before `end` and ends after
    `start`, so multi-day events show on every day they span. An event
    ending exactly at `start` belongs to the previous window; zero-length
    events (deadlines) are returned when their instant lies in the window.
    """
    start, end = naive_utc(start), naive_utc(end)
    if start and end and end <= start:
        raise InvalidInputError("end must be after start")

    query = db.query(CalendarEvent).filter(CalendarEvent.tenant_id == tenant.id)

    if start:
        query = query.filter(or_(
            CalendarEvent.end_time > start,
            and_(CalendarEvent.start_time >= start, CalendarEvent.end_time == CalendarEvent.start_time),
        ))
    if end:
        query = query.filter(CalendarEvent.start_time < end)
    if project_id:
        query = query.filter(CalendarEvent.project_id == project_id)

    return query.order_by(CalendarEvent.start_time).limit(500).all()


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return get_tenant_event(db, tenant.id, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    if event_data.project_id:
        get_tenant_project(db, tenant.id, event_data.project_id)

    event = CalendarEvent(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        created_by=current.user_id,
        updated_by=current.user_id,
        **event_data.model_dump()
    )
    db.add(event)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "calendar_event", event.id, event.title,
                 details={"start_time": event.start_time.isoformat()}, request=request)
    db.commit()
    db.refresh(event)

    logger.info(f"Event created: {event.id} by {current.user_id}")

    return event


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    event = get_tenant_event(db, tenant.id, event_id)
    update_data = event_data.model_dump(exclude_unset=True)

    if update_data.get("project_id"):
        get_tenant_project(db, tenant.id, update_data["project_id"])

    start_time = update_data.get("start_time", event.start_time)
    end_time = update_data.get("end_time", event.end_time)
    if end_time < start_time:
        raise InvalidInputError("end_time must be on or after start_time")

    for field, value in update_data.items():
        setattr(event, field, value)
    event.updated_by = current.user_id

    log_activity(db, tenant.id, current.user_id, "updated", "calendar_event", event.id, event.title,
                 details={"fields": sorted(update_data)}, request=request)
    db.commit()
    db.refresh(event)

    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    event = get_tenant_event(db, tenant.id, event_id)

    log_activity(db, tenant.id, current.user_id, "deleted", "calendar_event", event.id, event.title, request=request)
    db.delete(event)
    db.commit()

    logger.info(f"Event deleted: {event_id} by {current.user_id}")
    return None
