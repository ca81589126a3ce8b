"""
Dashboard and Search Endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from datetime import datetime, timedelta

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.tenant import Tenant
from projectpro.models.project import Project
from projectpro.models.task import Task
from projectpro.models.document import Document
from projectpro.models.contact import Contact
from projectpro.models.calendar import CalendarEvent
from projectpro.models.update_log import UpdateLog
from projectpro.models.messaging import ConversationParticipant
from projectpro.schemas.dashboard import DashboardResponse, SearchHit, SearchResponse
from projectpro.api.deps import get_current_membership, get_current_tenant

router = APIRouter(tags=["dashboard"])

OPEN_TASK_STATUSES = ("pending", "in_progress", "blocked")
UPCOMING_WINDOW = timedelta(days=7)
RECENT_UPDATES = 5
SEARCH_LIMIT_PER_KIND = 10


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Home screen numbers for the current tenant.

    Counts cover live projects only; tasks of deleted projects are ignored.
    """
    now = datetime.utcnow()

    by_status = dict(
        db.query(Project.status, func.count(Project.id)).filter(
            Project.tenant_id == tenant.id,
            Project.is_deleted == False  # noqa: E712
        ).group_by(Project.status).all()
    )

    open_tasks = db.query(Task).join(Project).filter(
        Task.tenant_id == tenant.id,
        Project.is_deleted == False,  # noqa: E712
        Task.status.in_(OPEN_TASK_STATUSES)
    )

    upcoming = db.query(CalendarEvent).filter(
        CalendarEvent.tenant_id == tenant.id,
        CalendarEvent.start_time >= now,
        CalendarEvent.start_time < now + UPCOMING_WINDOW
    ).order_by(CalendarEvent.start_time).limit(20).all()

    recent_updates = db.query(UpdateLog).filter(
        UpdateLog.tenant_id == tenant.id
    ).order_by(UpdateLog.date.desc(), UpdateLog.created_at.desc()).limit(RECENT_UPDATES).all()

    unread = db.query(func.coalesce(func.sum(ConversationParticipant.unread_count), 0)).filter(
        ConversationParticipant.tenant_id == tenant.id,
        ConversationParticipant.user_id == current.user_id,
        ConversationParticipant.left_at == None  # noqa: E711
    ).scalar()

    return DashboardResponse(
        projects_by_status=by_status,
        total_projects=sum(by_status.values()),
        open_tasks=open_tasks.count(),
        overdue_tasks=open_tasks.filter(Task.due_date < now).count(),
        my_open_tasks=open_tasks.filter(Task.assigned_to == current.user_id).count(),
        upcoming_events=upcoming,
        recent_updates=recent_updates,
        unread_messages=unread or 0,
    )


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=2, max_length=100),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Case-insensitive search across projects, tasks, documents and contacts."""
    pattern = f"%{q.lower()}%"

    projects = db.query(Project).filter(
        Project.tenant_id == tenant.id,
        Project.is_deleted == False,  # noqa: E712
        or_(
            func.lower(Project.name).like(pattern),
            func.lower(Project.project_code).like(pattern),
            func.lower(Project.client_name).like(pattern),
        )
    ).order_by(Project.name).limit(SEARCH_LIMIT_PER_KIND).all()

    tasks = db.query(Task).filter(
        Task.tenant_id == tenant.id,
        or_(func.lower(Task.title).like(pattern), func.lower(Task.description).like(pattern))
    ).order_by(Task.title).limit(SEARCH_LIMIT_PER_KIND).all()

    documents = db.query(Document).filter(
        Document.tenant_id == tenant.id,
        or_(func.lower(Document.name).like(pattern), func.lower(Document.description).like(pattern))
    ).order_by(Document.name).limit(SEARCH_LIMIT_PER_KIND).all()

    contacts = db.query(Contact).filter(
        Contact.tenant_id == tenant.id,
        or_(
            func.lower(Contact.name).like(pattern),
            func.lower(Contact.company).like(pattern),
            func.lower(Contact.email).like(pattern),
        )
    ).order_by(Contact.name).limit(SEARCH_LIMIT_PER_KIND).all()

    return SearchResponse(
        query=q,
        projects=[
            SearchHit(id=p.id, kind="project", title=p.name, subtitle=p.project_code, project_id=p.id)
            for p in projects
        ],
        tasks=[
            SearchHit(id=t.id, kind="task", title=t.title, subtitle=t.status, project_id=t.project_id)
            for t in tasks
        ],
        documents=[
            SearchHit(id=d.id, kind="document", title=d.name, subtitle=d.category, project_id=d.project_id)
            for d in documents
        ],
        contacts=[
            SearchHit(id=c.id, kind="contact", title=c.name, subtitle=c.company or c.contact_type)
            for c in contacts
        ],
    )
