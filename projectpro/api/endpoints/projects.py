"""
Project Management Endpoints

CRUD operations for construction projects within a tenant.

RBAC:
- List/view projects: All members
- Create project: Member role or higher (plan project limit applies)
- Update project: Members (any project), viewers cannot
- Delete project: Admin, or the member who created it
- Hard delete / restore: Admin
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date, datetime

from projectpro.database import get_db
from projectpro.models.user import User, TenantMembership
from projectpro.models.project import Project, ProjectMember, PROJECT_STATUSES, PRIORITIES
from projectpro.models.task import Task, TASK_STATUSES
from projectpro.models.document import Document
from projectpro.models.tenant import Tenant
from projectpro.schemas.project import (
    ProjectResponse,
    ProjectCreate,
    ProjectUpdate,
    ProjectListResponse,
    ProjectSummary,
    ProjectMemberCreate,
    ProjectMemberResponse,
    choice_pattern,
)
from projectpro.api.deps import (
    get_current_membership,
    get_current_tenant,
    require_member,
    require_admin,
    get_tenant_project,
    get_active_member,
    Pagination,
    get_pagination,
)
from projectpro.core.permissions import can_delete_project, can_modify_project, is_admin
from projectpro.core.project_codes import allocate_project_code, ensure_code_available
from projectpro.core.billing import check_project_limit
from projectpro.core.exceptions import PermissionDenied, InvalidInputError, ConflictError, NotFoundError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    project_status: Optional[str] = Query(None, alias="status", pattern=choice_pattern(PROJECT_STATUSES)),
    priority: Optional[str] = Query(None, pattern=choice_pattern(PRIORITIES)),
    project_manager_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    include_deleted: bool = False,
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    List projects in current tenant.

    TENANT_ISOLATION: Automatically filtered by current tenant.
    """
    query = db.query(Project).filter(Project.tenant_id == tenant.id)

    if not include_deleted:
        query = query.filter(Project.is_deleted == False)  # noqa: E712
    if project_status:
        query = query.filter(Project.status == project_status)
    if priority:
        query = query.filter(Project.priority == priority)
    if project_manager_id:
        query = query.filter(Project.project_manager_id == project_manager_id)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Project.name).like(pattern),
            func.lower(Project.project_code).like(pattern),
            func.lower(Project.client_name).like(pattern),
        ))

    projects, total = pagination.apply(query.order_by(Project.created_at.desc()))

    logger.debug(f"Listed {len(projects)} projects for tenant {tenant.id}")

    return ProjectListResponse(
        items=projects,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return get_tenant_project(db, tenant.id, project_id)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Create a new project.

    Without an explicit project_code, one is generated from the
    organization's code format (unless auto-generation is off).
    The creator joins the project team as lead.
    """
    check_project_limit(db, tenant.id)

    if project_data.project_manager_id:
        get_active_member(db, tenant.id, project_data.project_manager_id)

    values = project_data.model_dump(exclude={"project_code"})
    code = project_data.project_code.strip() if project_data.project_code else None
    if code:
        ensure_code_available(db, tenant.id, code)
        auto_generated = False
    else:
        code = allocate_project_code(db, tenant.id)
        auto_generated = code is not None

    new_project = Project(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        created_by=current.user_id,
        project_code=code,
        code_auto_generated=auto_generated,
        **values
    )
    db.add(new_project)
    db.flush()

    db.add(ProjectMember(
        tenant_id=tenant.id,
        project_id=new_project.id,
        user_id=current.user_id,
        role="lead",
    ))
    log_activity(db, tenant.id, current.user_id, "created", "project", new_project.id, new_project.name,
                 details={"project_code": code}, request=request)
    db.commit()
    db.refresh(new_project)

    logger.info(f"Project created: {new_project.id} ({code}) by {current.user_id}")

    return new_project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    request: Request,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    project = get_tenant_project(db, tenant.id, project_id)

    if not can_modify_project(current):
        raise PermissionDenied("Not authorized to modify this project")

    update_data = project_data.model_dump(exclude_unset=True)

    if update_data.get("project_manager_id"):
        get_active_member(db, tenant.id, update_data["project_manager_id"])

    if "project_code" in update_data:
        code = update_data["project_code"].strip() if update_data["project_code"] else None
        if code and code != project.project_code:
            ensure_code_available(db, tenant.id, code, exclude_project_id=project.id)
            update_data["code_auto_generated"] = False
        update_data["project_code"] = code

    start = update_data.get("start_date", project.start_date)
    end = update_data.get("end_date", project.end_date)
    if start and end and end < start:
        raise InvalidInputError("end_date must be on or after start_date")

    if update_data.get("status") == "Completed" and not project.actual_end_date:
        update_data.setdefault("actual_end_date", date.today())

    for field, value in update_data.items():
        setattr(project, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "project", project.id, project.name,
                 details={"fields": sorted(update_data)}, request=request)
    db.commit()
    db.refresh(project)

    logger.info(f"Project updated: {project.id} by {current.user_id}")

    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    request: Request,
    hard_delete: bool = Query(False, description="Permanently delete (admin only)"),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Delete project (soft delete by default).

    Hard delete permanently removes the project with its tasks,
    documents and update logs.
    """
    project = get_tenant_project(db, tenant.id, project_id, include_deleted=hard_delete)

    if not can_delete_project(current, project.created_by):
        raise PermissionDenied("Not authorized to delete this project")

    if hard_delete:
        if not is_admin(current):
            raise PermissionDenied("Hard delete requires admin privileges")
        log_activity(db, tenant.id, current.user_id, "deleted", "project", project.id, project.name,
                     details={"hard": True}, request=request)
        db.delete(project)
        logger.info(f"Project hard deleted: {project_id} by {current.user_id}")
    else:
        project.soft_delete()
        log_activity(db, tenant.id, current.user_id, "archived", "project", project.id, project.name,
                     request=request)
        logger.info(f"Project soft deleted: {project_id} by {current.user_id}")

    db.commit()
    return None


@router.post("/{project_id}/restore", response_model=ProjectResponse)
async def restore_project(
    project_id: str,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Restore a soft-deleted project. Requires admin role."""
    project = db.query(Project).filter(
        Project.id == project_id,
        Project.tenant_id == tenant.id,  # CRITICAL
        Project.is_deleted == True  # noqa: E712
    ).first()

    if not project:
        raise NotFoundError("Deleted project", project_id)

    project.restore()
    log_activity(db, tenant.id, current.user_id, "restored", "project", project.id, project.name,
                 request=request)
    db.commit()
    db.refresh(project)

    logger.info(f"Project restored: {project_id} by {current.user_id}")

    return project


@router.get("/{project_id}/summary", response_model=ProjectSummary)
async def project_summary(
    project_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Task counts by status, overdue tasks, budget, documents and team size."""
    project = get_tenant_project(db, tenant.id, project_id)

    counts = dict.fromkeys(TASK_STATUSES, 0)
    rows = db.query(Task.status, func.count(Task.id)).filter(
        Task.tenant_id == tenant.id,
        Task.project_id == project.id
    ).group_by(Task.status).all()
    for task_status, count in rows:
        counts[task_status] = count

    overdue = db.query(func.count(Task.id)).filter(
        Task.tenant_id == tenant.id,
        Task.project_id == project.id,
        Task.due_date < datetime.utcnow(),
        Task.status.notin_(("completed", "cancelled"))
    ).scalar()

    document_count = db.query(func.count(Document.id)).filter(
        Document.tenant_id == tenant.id,
        Document.project_id == project.id
    ).scalar()

    team_size = db.query(func.count(ProjectMember.id)).filter(
        ProjectMember.tenant_id == tenant.id,
        ProjectMember.project_id == project.id
    ).scalar()

    return ProjectSummary(
        project_id=project.id,
        task_counts=counts,
        total_tasks=sum(counts.values()),
        overdue_tasks=overdue,
        budget=project.budget,
        spent=project.spent or 0,
        budget_remaining=project.budget_remaining,
        document_count=document_count,
        team_size=team_size,
    )


def _member_response(member: ProjectMember, user: User) -> ProjectMemberResponse:
    return ProjectMemberResponse(
        id=member.id,
        project_id=member.project_id,
        user_id=member.user_id,
        role=member.role,
        joined_at=member.joined_at,
        email=user.email,
        full_name=user.full_name,
    )


@router.get("/{project_id}/members", response_model=list[ProjectMemberResponse])
async def list_project_members(
    project_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    project = get_tenant_project(db, tenant.id, project_id)
    rows = db.query(ProjectMember, User).join(User, User.id == ProjectMember.user_id).filter(
        ProjectMember.tenant_id == tenant.id,
        ProjectMember.project_id == project.id
    ).order_by(ProjectMember.joined_at).all()
    return [_member_response(member, user) for member, user in rows]


@router.post("/{project_id}/members", response_model=ProjectMemberResponse,
             status_code=status.HTTP_201_CREATED)
async def add_project_member(
    project_id: str,
    member_data: ProjectMemberCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Add an organization member to the project team."""
    project = get_tenant_project(db, tenant.id, project_id)
    membership = get_active_member(db, tenant.id, member_data.user_id)

    existing = db.query(ProjectMember).filter(
        ProjectMember.project_id == project.id,
        ProjectMember.user_id == member_data.user_id
    ).first()
    if existing:
        raise ConflictError("User is already on this project")

    member = ProjectMember(
        tenant_id=tenant.id,
        project_id=project.id,
        user_id=member_data.user_id,
        role=member_data.role,
    )
    db.add(member)
    log_activity(db, tenant.id, current.user_id, "added_member", "project", project.id, project.name,
                 details={"user_id": member_data.user_id, "role": member_data.role}, request=request)
    db.commit()
    db.refresh(member)

    logger.info(f"Project member added: {member_data.user_id} to {project.id} by {current.user_id}")

    return _member_response(member, membership.user)


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_project_member(
    project_id: str,
    user_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    project = get_tenant_project(db, tenant.id, project_id)
    member = db.query(ProjectMember).filter(
        ProjectMember.tenant_id == tenant.id,
        ProjectMember.project_id == project.id,
        ProjectMember.user_id == user_id
    ).first()
    if not member:
        raise NotFoundError("Project member", user_id)

    db.delete(member)
    log_activity(db, tenant.id, current.user_id, "removed_member", "project", project.id, project.name,
                 details={"user_id": user_id}, request=request)
    db.commit()

    logger.info(f"Project member removed: {user_id} from {project.id} by {current.user_id}")
    return None
