"""
Task Endpoints

Tasks, kanban moves, dependencies, comments and contact tags.

Status rules:
- Moving to completed stamps completed_at and sets progress to 100
- Leaving completed clears completed_at
- Moving to in_progress requires every finish_to_start predecessor to
  be completed, unless force=true

RBAC: viewers read; members and above write.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.project import PRIORITIES
from projectpro.models.task import Task, TaskDependency, TaskComment, TaskContact, TASK_STATUSES
from projectpro.models.contact import Contact
from projectpro.models.tenant import Tenant
from projectpro.schemas.project import choice_pattern
from projectpro.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskMove,
    TaskResponse,
    TaskDetailResponse,
    TaskListResponse,
    DependencyCreate,
    DependencyResponse,
    CommentCreate,
    CommentResponse,
    TaskContactsUpdate,
)
from projectpro.api.deps import (
    get_current_membership,
    get_current_tenant,
    require_member,
    get_tenant_project,
    get_active_member,
    Pagination,
    get_pagination,
)
from projectpro.core.permissions import can_modify_owned
from projectpro.core.scheduling import would_create_cycle, project_dependency_edges, blocking_predecessors
from projectpro.core.exceptions import (
    TaskNotFoundError,
    NotFoundError,
    InvalidInputError,
    ConflictError,
    PermissionDenied,
)
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_tenant_task(db: Session, tenant_id: str, task_id: str) -> Task:
    task = db.query(Task).filter(
        Task.id == task_id,
        Task.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    ).first()
    if not task:
        raise TaskNotFoundError(task_id)
    return task


def _next_position(db: Session, project_id: str, task_status: str) -> int:
    last = db.query(func.max(Task.position)).filter(
        Task.project_id == project_id,
        Task.status == task_status
    ).scalar()
    return 0 if last is None else last + 1


def _validate_parent(db: Session, task: Task, parent_task_id: Optional[str]) -> None:
    if not parent_task_id:
        return
    if parent_task_id == task.id:
        raise InvalidInputError("A task cannot be its own parent")
    parent = get_tenant_task(db, task.tenant_id, parent_task_id)
    if parent.project_id != task.project_id:
        raise InvalidInputError("Parent task must belong to the same project")


def apply_status_change(db: Session, task: Task, new_status: str, force: bool = False) -> None:
    """Apply the completion and start rules for a status change."""
    if new_status == task.status:
        return

    if new_status == "in_progress" and not force:
        blockers = blocking_predecessors(db, task)
        if blockers:
            titles = ", ".join(blocker.title for blocker in blockers)
            raise ConflictError(
                f"Task is blocked by unfinished predecessors: {titles}. Use force=true to override."
            )

    if new_status == "completed":
        task.completed_at = datetime.utcnow()
        task.progress = 100
    elif task.status == "completed":
        task.completed_at = None

    task.status = new_status


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    project_id: Optional[str] = None,
    task_status: Optional[str] = Query(None, alias="status", pattern=choice_pattern(TASK_STATUSES)),
    priority: Optional[str] = Query(None, pattern=choice_pattern(PRIORITIES)),
    assigned_to: Optional[str] = None,
    overdue: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    List tasks in current tenant.

    TENANT_ISOLATION: Automatically filtered by current tenant.
    """
    query = db.query(Task).filter(Task.tenant_id == tenant.id)

    if project_id:
        query = query.filter(Task.project_id == project_id)
    if task_status:
        query = query.filter(Task.status == task_status)
    if priority:
        query = query.filter(Task.priority == priority)
    if assigned_to:
        query = query.filter(Task.assigned_to == (current.user_id if assigned_to == "me" else assigned_to))
    if overdue is not None:
        overdue_clause = (Task.due_date < datetime.utcnow()) & Task.status.notin_(("completed", "cancelled"))
        query = query.filter(overdue_clause if overdue else ~overdue_clause | (Task.due_date == None))  # noqa: E711
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Task.title).like(pattern),
            func.lower(Task.description).like(pattern),
        ))

    tasks, total = pagination.apply(query.order_by(Task.status, Task.position, Task.created_at))

    return TaskListResponse(items=tasks, total=total, page=pagination.page, page_size=pagination.page_size)


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Task with its dependencies and tagged contacts."""
    return get_tenant_task(db, tenant.id, task_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Create a task at the end of its status column."""
    project = get_tenant_project(db, tenant.id, task_data.project_id)

    if task_data.assigned_to:
        get_active_member(db, tenant.id, task_data.assigned_to)

    values = task_data.model_dump(exclude={"project_id", "status", "checklist"})
    task = Task(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        project_id=project.id,
        status="pending",
        checklist=[item.model_dump() for item in task_data.checklist],
        created_by=current.user_id,
        assigned_by=current.user_id if task_data.assigned_to else None,
        **values
    )
    _validate_parent(db, task, task_data.parent_task_id)
    apply_status_change(db, task, task_data.status)
    task.position = _next_position(db, project.id, task.status)

    db.add(task)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "task", task.id, task.title,
                 details={"project_id": project.id}, request=request)
    db.commit()
    db.refresh(task)

    logger.info(f"Task created: {task.id} in project {project.id} by {current.user_id}")

    return task


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    request: Request,
    force: bool = Query(False, description="Start even if predecessors are unfinished"),
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    task = get_tenant_task(db, tenant.id, task_id)
    update_data = task_data.model_dump(exclude_unset=True)

    if update_data.get("assigned_to") and update_data["assigned_to"] != task.assigned_to:
        get_active_member(db, tenant.id, update_data["assigned_to"])
        task.assigned_by = current.user_id
    if "parent_task_id" in update_data:
        _validate_parent(db, task, update_data["parent_task_id"])

    new_status = update_data.pop("status", None)
    if new_status and new_status != task.status:
        previous = task.status
        apply_status_change(db, task, new_status, force=force)
        task.position = _next_position(db, task.project_id, new_status)
        # An explicit progress in the same request wins, except on completion
        if new_status == "completed":
            update_data.pop("progress", None)
        logger.info(f"Task {task.id} status {previous} -> {new_status} by {current.user_id}")

    for field, value in update_data.items():
        setattr(task, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "task", task.id, task.title,
                 details={"fields": sorted(task_data.model_dump(exclude_unset=True))}, request=request)
    db.commit()
    db.refresh(task)

    return task


@router.post("/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: str,
    move: TaskMove,
    request: Request,
    force: bool = Query(False),
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Kanban drag and drop: place the task at `position` in the `status` column.

    Cards at or after the target position in that column shift down by one.
    """
    task = get_tenant_task(db, tenant.id, task_id)
    previous = task.status
    apply_status_change(db, task, move.status, force=force)

    db.query(Task).filter(
        Task.tenant_id == tenant.id,
        Task.project_id == task.project_id,
        Task.status == move.status,
        Task.position >= move.position,
        Task.id != task.id
    ).update({Task.position: Task.position + 1}, synchronize_session=False)
    task.position = move.position

    log_activity(db, tenant.id, current.user_id, "moved", "task", task.id, task.title,
                 details={"from": previous, "to": move.status, "position": move.position}, request=request)
    db.commit()
    db.refresh(task)

    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    task = get_tenant_task(db, tenant.id, task_id)

    db.query(TaskDependency).filter(
        TaskDependency.tenant_id == tenant.id,
        TaskDependency.depends_on_task_id == task.id
    ).delete(synchronize_session=False)

    log_activity(db, tenant.id, current.user_id, "deleted", "task", task.id, task.title, request=request)
    db.delete(task)
    db.commit()

    logger.info(f"Task deleted: {task_id} by {current.user_id}")
    return None


# ============================================================================
# DEPENDENCIES
# ============================================================================

@router.get("/{task_id}/dependencies", response_model=list[DependencyResponse])
async def list_dependencies(
    task_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    task = get_tenant_task(db, tenant.id, task_id)
    return task.dependencies


@router.post("/{task_id}/dependencies", response_model=DependencyResponse, status_code=status.HTTP_201_CREATED)
async def add_dependency(
    task_id: str,
    dependency_data: DependencyCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Make task_id wait for depends_on_task_id."""
    task = get_tenant_task(db, tenant.id, task_id)

    if dependency_data.depends_on_task_id == task.id:
        raise InvalidInputError("A task cannot depend on itself")

    predecessor = get_tenant_task(db, tenant.id, dependency_data.depends_on_task_id)
    if predecessor.project_id != task.project_id:
        raise InvalidInputError("Dependencies must be between tasks of the same project")

    existing = db.query(TaskDependency.id).filter(
        TaskDependency.task_id == task.id,
        TaskDependency.depends_on_task_id == predecessor.id
    ).first()
    if existing:
        raise ConflictError("Dependency already exists")

    edges = project_dependency_edges(db, tenant.id, task.project_id)
    if would_create_cycle(edges, task.id, predecessor.id):
        raise InvalidInputError("Dependency would create a cycle")

    dependency = TaskDependency(
        tenant_id=tenant.id,
        task_id=task.id,
        depends_on_task_id=predecessor.id,
        dependency_type=dependency_data.dependency_type,
        lag_days=dependency_data.lag_days,
        created_by=current.user_id,
    )
    db.add(dependency)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "added_dependency", "task", task.id, task.title,
                 details={"depends_on": predecessor.id, "type": dependency.dependency_type}, request=request)
    db.commit()
    db.refresh(dependency)

    logger.info(f"Dependency created: {task.id} -> {predecessor.id} by {current.user_id}")

    return dependency


@router.delete("/{task_id}/dependencies/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_dependency(
    task_id: str,
    dependency_id: str,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    dependency = db.query(TaskDependency).filter(
        TaskDependency.id == dependency_id,
        TaskDependency.task_id == task_id,
        TaskDependency.tenant_id == tenant.id  # CRITICAL
    ).first()
    if not dependency:
        raise NotFoundError("Dependency", dependency_id)

    db.delete(dependency)
    db.commit()

    logger.info(f"Dependency removed: {dependency_id} by {current.user_id}")
    return None


# ============================================================================
# COMMENTS
# ============================================================================

@router.get("/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    task_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    task = get_tenant_task(db, tenant.id, task_id)
    return db.query(TaskComment).filter(
        TaskComment.tenant_id == tenant.id,
        TaskComment.task_id == task.id
    ).order_by(TaskComment.created_at).all()


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: str,
    comment_data: CommentCreate,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    task = get_tenant_task(db, tenant.id, task_id)
    comment = TaskComment(
        tenant_id=tenant.id,
        task_id=task.id,
        user_id=current.user_id,
        comment=comment_data.comment,
        attachments=comment_data.attachments,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"Comment added: {comment.id} on task {task.id} by {current.user_id}")

    return comment


@router.delete("/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    task_id: str,
    comment_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Authors delete their own comments; admins delete any."""
    comment = db.query(TaskComment).filter(
        TaskComment.id == comment_id,
        TaskComment.task_id == task_id,
        TaskComment.tenant_id == tenant.id  # CRITICAL
    ).first()
    if not comment:
        raise NotFoundError("Comment", comment_id)

    if not can_modify_owned(current, comment.user_id):
        raise PermissionDenied("Only the author or an admin can delete this comment")

    db.delete(comment)
    db.commit()

    logger.info(f"Comment deleted: {comment_id} by {current.user_id}")
    return None


# ============================================================================
# CONTACT TAGS
# ============================================================================

@router.put("/{task_id}/contacts", response_model=TaskDetailResponse)
async def set_task_contacts(
    task_id: str,
    contacts_data: TaskContactsUpdate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Replace the vendors, contractors and design professionals tagged on a task."""
    task = get_tenant_task(db, tenant.id, task_id)
    wanted = list(dict.fromkeys(contacts_data.contact_ids))

    if wanted:
        found = {
            contact_id for (contact_id,) in db.query(Contact.id).filter(
                Contact.tenant_id == tenant.id,  # CRITICAL
                Contact.id.in_(wanted)
            ).all()
        }
        missing = [contact_id for contact_id in wanted if contact_id not in found]
        if missing:
            raise NotFoundError("Contact", ", ".join(missing))

    current_ids = {link.contact_id for link in task.contact_links}
    for link in list(task.contact_links):
        if link.contact_id not in wanted:
            task.contact_links.remove(link)
    for contact_id in wanted:
        if contact_id not in current_ids:
            task.contact_links.append(TaskContact(tenant_id=tenant.id, contact_id=contact_id))

    log_activity(db, tenant.id, current.user_id, "tagged_contacts", "task", task.id, task.title,
                 details={"contact_ids": wanted}, request=request)
    db.commit()
    db.refresh(task)

    return task
